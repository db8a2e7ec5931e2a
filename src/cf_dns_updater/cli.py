#!/usr/bin/env python3
"""cf-dns-updater - Cloudflare Dynamic DNS

Keeps a set of Cloudflare "A" records pointed at this host's current public IP
address. The address is re-checked on a cron schedule and the records are only
touched when it has changed.

Each pass:
    1. Fetch the public IP address and compare it to the last one seen
    2. Resolve the zone id, then every record id concurrently
    3. Abort unless every configured record exists
    4. Update every record concurrently with the new address

Options (command line > environment > YAML config file):

    -k, --api-key          CF_API_KEY              Cloudflare global API key (required)
    -e, --email            CF_EMAIL                Cloudflare account e-mail (required)
    -z, --zone             CF_ZONE                 Zone name, e.g. example.com (required)
    -r, --records          CF_RECORDS              Comma-separated record names (required)
    -c, --cron             CF_CRON                 Cron expression, 5 fields or 6 with
                                                   leading seconds (default: 0 */5 * * * *)
    --once                 SYNC_MODE=once          Run a single pass and exit
    --ip-service-url       IP_SERVICE_URL          Address echo service
                                                   (default: https://api.ipify.org)
    --timeout              HTTP_TIMEOUT_SECONDS    Per-request timeout (default: 10)
    --commit-after-update  CF_COMMIT_AFTER_UPDATE  Only remember the new address once
                                                   every record was updated
    --config               CF_CONFIG_PATH          YAML config file
                                                   (default: /config/cf-dns-updater.yaml)
                           LOG_LEVEL               DEBUG, INFO, WARNING, ERROR (default: INFO)

    A .env file in the working directory is loaded into the environment on start.

    Example config file:
        api_key: "..."
        email: "me@example.com"
        zone: "example.com"
        records:
          - "example.com"
          - "home.example.com"
        cron: "0 */5 * * * *"
"""

from __future__ import annotations

import argparse
import logging
import math
import os
import signal
import sys
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, as_completed, wait
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import requests
import yaml
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from dotenv import load_dotenv

# =============================================================================
# Configuration
# =============================================================================

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4"
DEFAULT_IP_SERVICE_URL = "https://api.ipify.org"
DEFAULT_CONFIG_PATH = "/config/cf-dns-updater.yaml"
DEFAULT_CRON = "0 */5 * * * *"
DEFAULT_TIMEOUT_SECONDS = 10.0

RECORD_TYPE = "A"

# =============================================================================
# Logging Setup
# =============================================================================

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# =============================================================================
# Errors
# =============================================================================


class DNSUpdaterError(Exception):
    """Base class for every error raised by cf-dns-updater."""


class NetworkError(DNSUpdaterError):
    """The public address service could not be reached or answered badly."""


class ProviderError(DNSUpdaterError):
    """Cloudflare returned a non-success response or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpdateError(ProviderError):
    """One or more record updates failed. Other records may have been updated."""

    def __init__(self, record_ids: Sequence[str]):
        self.record_ids = tuple(record_ids)
        super().__init__(f"Failed to update DNS record(s): {', '.join(self.record_ids)}")


class NotFoundError(DNSUpdaterError):
    """The zone or at least one of the configured records does not exist."""

    def __init__(self, message: str, names: Sequence[str] = ()):
        super().__init__(message)
        self.names = tuple(names)


class ValidationError(DNSUpdaterError):
    """Configuration is incomplete or malformed. Fatal at startup."""

    def __init__(self, errors: Any):
        self.errors: List[str] = [errors] if isinstance(errors, str) else list(errors)
        super().__init__("; ".join(self.errors))


# =============================================================================
# Enums
# =============================================================================


class PassState(Enum):
    """Where a reconciliation pass currently is."""

    IDLE = "idle"
    CHECKING_ADDRESS = "checking_address"
    NO_CHANGE = "no_change"
    RESOLVING = "resolving"
    VALIDATING = "validating"
    UPDATING = "updating"
    FAILED = "failed"


class PassOutcome(Enum):
    """Terminal result of a reconciliation pass."""

    NO_CHANGE = "no_change"
    UPDATED = "updated"
    FAILED = "failed"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class Config:
    """Runtime configuration, built once at startup."""

    api_key: str
    email: str
    zone: str
    records: Tuple[str, ...]
    cron: str = DEFAULT_CRON
    run_once: bool = False
    ip_service_url: str = DEFAULT_IP_SERVICE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    commit_after_update: bool = False

    def masked(self) -> Dict[str, Any]:
        """Return the configuration as a dict with the API key hidden, for logging."""
        masked_key = f"{self.api_key[:4]}***" if len(self.api_key) > 8 else "***"
        return {
            "api_key": masked_key,
            "email": self.email,
            "zone": self.zone,
            "records": list(self.records),
            "cron": self.cron,
            "run_once": self.run_once,
            "ip_service_url": self.ip_service_url,
            "timeout_seconds": self.timeout_seconds,
            "commit_after_update": self.commit_after_update,
        }


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of updating a single record."""

    record_id: str
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class PassResult:
    """Outcome of one reconciliation pass."""

    outcome: PassOutcome
    address: Optional[str] = None
    error: Optional[Exception] = None
    updated: Tuple[str, ...] = ()
    failed_in: Optional[PassState] = None

    @property
    def failed(self) -> bool:
        return self.outcome is PassOutcome.FAILED


# =============================================================================
# Address Resolver
# =============================================================================


class AddressResolver:
    """Fetches this host's public IP address from an address echo service."""

    def __init__(
        self,
        url: str = DEFAULT_IP_SERVICE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._url = url
        self._timeout = timeout_seconds
        self._session = requests.Session()

    def current_address(self) -> str:
        """Return the public address as reported by the service. One attempt, no retry."""
        try:
            response = self._session.get(self._url, timeout=self._timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Failed to get public IP address from {self._url}: {e}") from e

        address = response.text.strip()
        if not address:
            raise NetworkError(f"Empty response from {self._url}")
        return address


# =============================================================================
# Change Cache
# =============================================================================


class ChangeCache:
    """In-memory store for the last public address handed to the provider.

    Only one key is used in practice. Capacity is capped so the store can never
    grow without bound; the oldest key is dropped first.
    """

    PREVIOUS_IP_ADDRESS = "previous-ip-address"

    def __init__(self, max_entries: int = 10):
        self.max_entries = max_entries
        self._entries: OrderedDict[str, str] = OrderedDict()

    def get(self, key: str = PREVIOUS_IP_ADDRESS) -> Optional[str]:
        value = self._entries.get(key)
        if value is not None:
            self._entries.move_to_end(key)
        return value

    def set(self, value: str, key: str = PREVIOUS_IP_ADDRESS) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# Cloudflare Client
# =============================================================================


def _first_result_id(data: Dict[str, Any]) -> Optional[str]:
    """Return the id of the first entry in a Cloudflare list response."""
    result = data.get("result")
    if not isinstance(result, list) or not result:
        return None
    first = result[0]
    if not isinstance(first, dict) or not first.get("id"):
        return None
    return str(first["id"])


def _format_api_errors(errors: Any) -> str:
    if not isinstance(errors, list) or not errors:
        return "unknown error"
    parts = []
    for error in errors:
        if isinstance(error, dict):
            parts.append(f"[{error.get('code', '?')}] {error.get('message', '')}".strip())
        else:
            parts.append(str(error))
    return "; ".join(parts)


class CloudflareClient:
    """Cloudflare v4 API client covering the three calls a pass needs."""

    def __init__(
        self,
        email: str,
        api_key: str,
        *,
        base_url: str = CLOUDFLARE_API_BASE,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._session = requests.Session()
        self._session.headers.update(
            {
                "X-Auth-Email": email,
                "X-Auth-Key": api_key,
                "Content-Type": "application/json",
            }
        )

    @property
    def name(self) -> str:
        return "Cloudflare"

    def _call(self, method: str, path: str, *, action: str, **kwargs: Any) -> Dict[str, Any]:
        send = getattr(self._session, method)
        try:
            response = send(f"{self._base_url}{path}", timeout=self._timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"Failed to {action}: {e}") from e

        if not response.ok:
            logger.debug(f"Cloudflare response: {response.status_code} {response.text}")
            raise ProviderError(
                f"Failed to {action}: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(f"Failed to {action}: invalid JSON response") from e

        logger.debug(f"Cloudflare response: {data}")
        if not isinstance(data, dict):
            raise ProviderError(f"Failed to {action}: unexpected response format")
        if data.get("success") is False:
            raise ProviderError(f"Failed to {action}: {_format_api_errors(data.get('errors'))}")
        return data

    def test_connection(self) -> bool:
        """Check that the credentials are accepted."""
        try:
            self._call("get", "/user", action="verify credentials")
            logger.info(f"{self.name} connection successful")
            return True
        except ProviderError as e:
            logger.error(f"Failed to connect to {self.name}: {e}")
            return False

    def find_zone(self, zone_name: str) -> Optional[str]:
        """Return the id of the first zone named ``zone_name``, or None."""
        data = self._call("get", "/zones", action=f"find zone {zone_name}", params={"name": zone_name})
        return _first_result_id(data)

    def find_record(
        self, zone_id: str, record_name: str, record_type: str = RECORD_TYPE
    ) -> Optional[str]:
        """Return the id of the first ``record_type`` record named ``record_name``, or None."""
        data = self._call(
            "get",
            f"/zones/{zone_id}/dns_records",
            action=f"find record {record_name}",
            params={"name": record_name, "type": record_type},
        )
        return _first_result_id(data)

    def set_record_address(self, zone_id: str, record_id: str, address: str) -> None:
        self._call(
            "patch",
            f"/zones/{zone_id}/dns_records/{record_id}",
            action=f"update DNS record {record_id}",
            json={"type": RECORD_TYPE, "content": address},
        )
        logger.info(f"Updated zone {zone_id} record {record_id} with {address}")


# =============================================================================
# Reconciliation Engine
# =============================================================================


class ReconciliationEngine:
    """Runs reconciliation passes. Passes must not overlap."""

    def __init__(
        self,
        *,
        provider: CloudflareClient,
        resolver: AddressResolver,
        zone: str,
        records: Sequence[str],
        cache: Optional[ChangeCache] = None,
        commit_after_update: bool = False,
    ):
        self.provider = provider
        self.resolver = resolver
        self.zone = zone
        self.records = tuple(records)
        self.cache = cache if cache is not None else ChangeCache()
        self.commit_after_update = commit_after_update
        self.state = PassState.IDLE

    def resolve_zone(self, zone_name: str) -> str:
        zone_id = self.provider.find_zone(zone_name)
        if not zone_id:
            raise NotFoundError(f"Zone {zone_name} doesn't exist", names=[zone_name])
        logger.info(f"Zone ID: {zone_id}")
        return zone_id

    def resolve_records(
        self, zone_id: str, record_names: Sequence[str]
    ) -> Dict[str, Optional[str]]:
        """Look up every record concurrently.

        Names without a matching record map to None. The first lookup that
        fails aborts the whole call with ProviderError; lookups that have not
        started are cancelled and results still in flight are discarded.
        """
        names = list(record_names)
        if not names:
            return {}

        executor = ThreadPoolExecutor(max_workers=len(names), thread_name_prefix="resolve")
        futures = {
            executor.submit(self.provider.find_record, zone_id, name, RECORD_TYPE): name
            for name in names
        }
        found: Dict[str, Optional[str]] = {}
        try:
            for future in as_completed(futures):
                name = futures[future]
                try:
                    found[name] = future.result()
                except ProviderError:
                    raise
                except DNSUpdaterError as e:
                    raise ProviderError(f"Failed to find record {name}: {e}") from e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        record_ids = {name: found.get(name) for name in names}
        logger.info(f"Record IDs: {record_ids}")
        return record_ids

    def validate_records(
        self, record_names: Sequence[str], record_ids: Mapping[str, Optional[str]]
    ) -> List[str]:
        """Return the ids in configured order, or raise if any record is missing."""
        missing = [name for name in record_names if not record_ids.get(name)]
        if missing:
            raise NotFoundError(f"Record {missing[0]} doesn't exist", names=missing)
        return [str(record_ids[name]) for name in record_names]

    def update_records(
        self, zone_id: str, record_ids: Iterable[str], address: str
    ) -> List[UpdateResult]:
        """Update every record concurrently and wait for all of them.

        A failed update never stops the others; every outcome is returned.
        """
        ids = list(record_ids)
        if not ids:
            return []

        with ThreadPoolExecutor(max_workers=len(ids), thread_name_prefix="update") as executor:
            futures = [
                executor.submit(self.provider.set_record_address, zone_id, record_id, address)
                for record_id in ids
            ]
            wait(futures)

        results: List[UpdateResult] = []
        for record_id, future in zip(ids, futures):
            error = future.exception()
            if error is not None:
                logger.error(f"Failed to update record {record_id}: {error}")
            results.append(UpdateResult(record_id=record_id, error=error))
        return results

    def run(self) -> PassResult:
        """Run one pass and report how it ended. Errors are logged, never raised."""
        address: Optional[str] = None
        try:
            self.state = PassState.CHECKING_ADDRESS
            address = self.resolver.current_address()
            previous = self.cache.get()
            logger.debug(f"Current IP address: {address}, previous IP address: {previous}")

            if previous == address:
                self.state = PassState.NO_CHANGE
                logger.debug("IP address unchanged, skipping")
                return PassResult(outcome=PassOutcome.NO_CHANGE, address=address)

            logger.info(f"IP address changed: {previous or '(none)'} -> {address}")
            if not self.commit_after_update:
                self.cache.set(address)

            self.state = PassState.RESOLVING
            zone_id = self.resolve_zone(self.zone)
            record_ids = self.resolve_records(zone_id, self.records)

            self.state = PassState.VALIDATING
            ids = self.validate_records(self.records, record_ids)

            self.state = PassState.UPDATING
            results = self.update_records(zone_id, ids, address)
            failed = [r.record_id for r in results if not r.ok]
            if failed:
                raise UpdateError(failed)

            if self.commit_after_update:
                self.cache.set(address)
            logger.info(f"Updated {len(ids)} record(s) in {self.zone} to {address}")
            return PassResult(outcome=PassOutcome.UPDATED, address=address, updated=tuple(ids))

        except DNSUpdaterError as e:
            failed_in = self.state
            self.state = PassState.FAILED
            logger.error(f"Reconciliation pass failed while {failed_in.value}: {e}")
            return PassResult(
                outcome=PassOutcome.FAILED, address=address, error=e, failed_in=failed_in
            )
        except Exception as e:
            failed_in = self.state
            self.state = PassState.FAILED
            logger.error(f"Unexpected error while {failed_in.value}: {e}", exc_info=True)
            return PassResult(
                outcome=PassOutcome.FAILED, address=address, error=e, failed_in=failed_in
            )
        finally:
            self.state = PassState.IDLE


# =============================================================================
# Utility Functions
# =============================================================================


def _parse_bool(value: Any, *, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}


def _parse_records(value: Any) -> Tuple[str, ...]:
    """Parse record names from a comma-separated string or a list.

    Whitespace is trimmed, empty entries dropped and duplicates removed,
    keeping the first occurrence.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        raise ValidationError("records must be a string or a list")

    records: List[str] = []
    for raw_item in items:
        item = raw_item.strip()
        if item and item not in records:
            records.append(item)
    return tuple(records)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def build_trigger(expression: str) -> CronTrigger:
    """Build a CronTrigger from a 5-field crontab or a 6-field expression with seconds."""
    fields = expression.split()
    try:
        if len(fields) == 5:
            return CronTrigger.from_crontab(expression)
        if len(fields) == 6:
            second, minute, hour, day, month, day_of_week = fields
            return CronTrigger(
                second=second,
                minute=minute,
                hour=hour,
                day=day,
                month=month,
                day_of_week=day_of_week,
            )
    except ValueError as e:
        raise ValidationError(f"Invalid cron expression '{expression}': {e}") from e
    raise ValidationError(
        f"Invalid cron expression '{expression}': expected 5 or 6 fields, got {len(fields)}"
    )


def load_config_file(path: str, *, required: bool = False) -> Dict[str, Any]:
    """Load settings from a YAML file. A missing optional file yields no settings."""
    config_file = Path(path)
    if not config_file.is_file():
        if required:
            raise ValidationError(f"Config file {path} not found")
        return {}

    try:
        with open(config_file, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ValidationError(f"Failed to load config from {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"Config file {path} must contain a mapping")
    logger.info(f"Loaded settings from {path}")
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cf-dns-updater",
        description="Keep Cloudflare A records pointed at this host's public IP address",
    )
    parser.add_argument("-k", "--api-key", help="Cloudflare API key (env: CF_API_KEY)")
    parser.add_argument("-e", "--email", help="Cloudflare e-mail address (env: CF_EMAIL)")
    parser.add_argument("-z", "--zone", help="Cloudflare zone name (env: CF_ZONE)")
    parser.add_argument(
        "-r", "--records", help="Comma-separated Cloudflare record names (env: CF_RECORDS)"
    )
    parser.add_argument(
        "-c", "--cron", help=f"Cron expression (env: CF_CRON, default: '{DEFAULT_CRON}')"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        default=None,
        help="Run a single pass and exit (env: SYNC_MODE=once)",
    )
    parser.add_argument(
        "--ip-service-url",
        help=f"Public address echo service (env: IP_SERVICE_URL, default: {DEFAULT_IP_SERVICE_URL})",
    )
    parser.add_argument(
        "--timeout",
        help=f"Per-request timeout in seconds (env: HTTP_TIMEOUT_SECONDS, default: {DEFAULT_TIMEOUT_SECONDS:g})",
    )
    parser.add_argument(
        "--commit-after-update",
        action="store_true",
        default=None,
        help="Only remember a new address after every record was updated (env: CF_COMMIT_AFTER_UPDATE)",
    )
    parser.add_argument(
        "--config", help=f"YAML config file (env: CF_CONFIG_PATH, default: {DEFAULT_CONFIG_PATH})"
    )
    return parser


def load_config(
    argv: Optional[Sequence[str]] = None, environ: Optional[Mapping[str, str]] = None
) -> Config:
    """Build the Config from command line, environment and config file.

    Raises ValidationError listing every problem found.
    """
    args = build_parser().parse_args(argv)
    env = os.environ if environ is None else environ

    config_path = args.config or env.get("CF_CONFIG_PATH") or DEFAULT_CONFIG_PATH
    explicit_path = bool(args.config or env.get("CF_CONFIG_PATH"))
    file_values = load_config_file(config_path, required=explicit_path)

    def pick(arg_value: Any, env_name: str, key: str) -> Any:
        if arg_value is not None:
            return arg_value
        if not _is_blank(env.get(env_name)):
            return env[env_name]
        return file_values.get(key)

    errors: List[str] = []

    api_key = pick(args.api_key, "CF_API_KEY", "api_key")
    email = pick(args.email, "CF_EMAIL", "email")
    zone = pick(args.zone, "CF_ZONE", "zone")
    try:
        records = _parse_records(pick(args.records, "CF_RECORDS", "records"))
    except ValidationError as e:
        errors.extend(e.errors)
        records = None
    if _is_blank(api_key):
        errors.append("API key is required (--api-key or CF_API_KEY)")
    if _is_blank(email):
        errors.append("E-mail is required (--email or CF_EMAIL)")
    if _is_blank(zone):
        errors.append("Zone is required (--zone or CF_ZONE)")
    if records == ():
        errors.append("At least one record is required (--records or CF_RECORDS)")

    cron = str(pick(args.cron, "CF_CRON", "cron") or DEFAULT_CRON).strip()
    try:
        build_trigger(cron)
    except ValidationError as e:
        errors.extend(e.errors)

    if args.once:
        run_once = True
    elif not _is_blank(env.get("SYNC_MODE")):
        sync_mode = str(env["SYNC_MODE"]).strip().lower()
        if sync_mode not in {"once", "watch"}:
            errors.append(f"Invalid SYNC_MODE: {sync_mode}. Use 'once' or 'watch'")
        run_once = sync_mode == "once"
    else:
        run_once = _parse_bool(file_values.get("once"))

    raw_timeout = pick(args.timeout, "HTTP_TIMEOUT_SECONDS", "timeout_seconds")
    timeout_seconds = DEFAULT_TIMEOUT_SECONDS
    if not _is_blank(raw_timeout):
        try:
            timeout_seconds = float(raw_timeout)
        except (TypeError, ValueError):
            errors.append(f"Invalid timeout: {raw_timeout}")
        else:
            if not (math.isfinite(timeout_seconds) and timeout_seconds > 0):
                errors.append(f"Timeout must be a positive number, got {raw_timeout}")

    ip_service_url = str(
        pick(args.ip_service_url, "IP_SERVICE_URL", "ip_service_url") or DEFAULT_IP_SERVICE_URL
    ).strip()
    commit_after_update = _parse_bool(
        pick(args.commit_after_update, "CF_COMMIT_AFTER_UPDATE", "commit_after_update")
    )

    if errors:
        raise ValidationError(errors)

    return Config(
        api_key=str(api_key).strip(),
        email=str(email).strip(),
        zone=str(zone).strip(),
        records=records,
        cron=cron,
        run_once=run_once,
        ip_service_url=ip_service_url,
        timeout_seconds=timeout_seconds,
        commit_after_update=commit_after_update,
    )


# =============================================================================
# Scheduler
# =============================================================================


def create_scheduler(engine: ReconciliationEngine, trigger: CronTrigger) -> BlockingScheduler:
    """Schedule ``engine.run`` on ``trigger``.

    At most one pass runs at a time; a tick that fires while a pass is still
    running is skipped and missed ticks are coalesced into one.
    """
    scheduler = BlockingScheduler()
    scheduler.add_job(
        engine.run,
        trigger,
        id="reconcile",
        name="reconcile",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


# =============================================================================
# Main
# =============================================================================


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    try:
        config = load_config(argv)
        trigger = build_trigger(config.cron)
    except ValidationError as e:
        for error in e.errors:
            logger.error(error)
        logger.error("Configuration validation failed")
        return 1

    logger.debug(f"Configuration: {config.masked()}")
    logger.info(f"cf-dns-updater: zone {config.zone}, records {', '.join(config.records)}")

    provider = CloudflareClient(
        config.email, config.api_key, timeout_seconds=config.timeout_seconds
    )
    resolver = AddressResolver(config.ip_service_url, timeout_seconds=config.timeout_seconds)
    engine = ReconciliationEngine(
        provider=provider,
        resolver=resolver,
        zone=config.zone,
        records=config.records,
        commit_after_update=config.commit_after_update,
    )

    if not provider.test_connection():
        logger.warning(f"Could not verify {provider.name} credentials, continuing anyway")

    if config.run_once:
        result = engine.run()
        return 1 if result.failed else 0

    scheduler = create_scheduler(engine, trigger)
    signal.signal(signal.SIGTERM, lambda signum, frame: scheduler.shutdown(wait=False))

    logger.info(f"Starting cron job with cron: {config.cron}")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down gracefully...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
