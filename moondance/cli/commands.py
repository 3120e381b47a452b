import datetime
import json
import logging
import sys
from pathlib import Path

from moondance.config import load_config
from moondance.errors import MoondanceError
from moondance.planner import Planner, PlannerRequest, ObserverLocation, Target
from moondance.planner.formatters import (
    format_csv,
    format_json as format_plan_json,
    format_scan_text,
    format_suggestions_text,
    format_text,
    to_jsonable,
)
from moondance.planner.horizon import CardinalDirection, DirectionalAltitudeProfile
from moondance.planner.night import resolve_timezone
from moondance.planner.providers import export_targets, get_catalog_providers
from moondance.util.format import format_angle

logger = logging.getLogger(__name__)


def _json_envelope(command: str, ok: bool, data=None, error=None) -> dict:
    return {
        "ok": ok,
        "command": command,
        "timestamp_utc": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "data": data,
        "error": error,
    }


def _init_logging(level: str | None) -> None:
    if not level:
        return
    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "error": logging.ERROR,
    }
    logging.basicConfig(level=level_map.get(level, logging.INFO))


def _handle_error(command: str, args, exc: Exception, code: str = "invalid_input") -> int:
    if args is not None and getattr(args, "json", False):
        payload = _json_envelope(
            command=command,
            ok=False,
            data=None,
            error={
                "code": code,
                "message": str(exc),
                "details": None,
            },
        )
        print(json.dumps(payload, indent=2))
    else:
        print(str(exc), file=sys.stderr)
    return 2


def _config_path_from_args(args) -> Path | None:
    if args is None:
        return None
    path = getattr(args, "config", None)
    return Path(path) if path else None


def _parse_date_arg(value: str | None) -> datetime.date:
    if not value:
        return datetime.date.today()
    try:
        return datetime.date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value}") from exc


def _parse_location_args(args, config) -> ObserverLocation:
    base = config.site_location()
    lat = getattr(args, "latitude_deg", None)
    lon = getattr(args, "longitude_deg", None)
    tz = getattr(args, "timezone", None)
    if lat is None and lon is None:
        if base is None:
            raise ValueError("Observer location is required (--lat/--lon or [site] in config)")
        if tz:
            return ObserverLocation(
                latitude_deg=base.latitude_deg,
                longitude_deg=base.longitude_deg,
                elevation_m=base.elevation_m,
                timezone=tz,
                name=base.name,
            )
        return base
    if lat is None or lon is None:
        raise ValueError("Both latitude and longitude are required when specifying location")
    return ObserverLocation(
        latitude_deg=lat,
        longitude_deg=lon,
        elevation_m=getattr(args, "elevation_m", None),
        timezone=tz or (base.timezone if base is not None else "UTC"),
    )


def _resolve_targets(planner: Planner, ids: list[str] | None) -> list[Target]:
    targets: list[Target] = []
    for target_id in ids or []:
        target = planner.find_target(target_id)
        if target is None:
            raise ValueError(f"Unknown target: {target_id}")
        targets.append(target)
    return targets


def _ad_hoc_target(args) -> Target | None:
    ra = getattr(args, "ra_deg", None)
    dec = getattr(args, "dec_deg", None)
    if ra is None and dec is None:
        return None
    if ra is None or dec is None:
        raise ValueError("Both --ra and --dec are required for an ad-hoc target")
    if not 0.0 <= ra <= 360.0 or not -90.0 <= dec <= 90.0:
        raise ValueError("RA must be within 0..360 and Dec within -90..90")
    name = getattr(args, "name", None) or f"Custom ({ra:.4f}°, {dec:.4f}°)"
    return Target(id="adhoc", name=name, ra_deg=ra, dec_deg=dec)


def _build_request(args, config, planner: Planner, target_ids: list[str] | None) -> PlannerRequest:
    targets = _resolve_targets(planner, target_ids)
    ad_hoc = _ad_hoc_target(args)
    if ad_hoc is not None:
        targets.append(ad_hoc)

    horizon = config.horizon_profile()
    if getattr(args, "min_alt", None) is not None:
        horizon = DirectionalAltitudeProfile.uniform(args.min_alt)

    hour = args.hour if getattr(args, "hour", None) is not None else config.planner_observation_hour
    buffer = args.buffer if getattr(args, "buffer", None) is not None else config.planner_dusk_dawn_buffer_hours
    return PlannerRequest(
        location=_parse_location_args(args, config),
        targets=tuple(targets),
        start_date=_parse_date_arg(getattr(args, "start", None)),
        days=getattr(args, "days", 1),
        observation_hour=hour,
        horizon=horizon,
        dusk_dawn_buffer_hours=buffer,
        moon_tiers=config.moon_tiers(),
        imaging_altitude_deg=config.planner_imaging_altitude_deg,
    )


def run_doctor(args=None) -> int:
    _init_logging(getattr(args, "log_level", None))

    def check_config():
        try:
            config = load_config(_config_path_from_args(args))
        except (OSError, MoondanceError) as e:
            return None, {"ok": False, "detail": f"invalid config: {e}"}
        return config, {"ok": True, "detail": "loaded (defaults applied if missing)"}

    config, config_check = check_config()

    def check_site():
        if config is None:
            return {"ok": False, "detail": "config not loaded"}
        try:
            location = config.site_location()
        except MoondanceError as e:
            return {"ok": False, "detail": str(e)}
        if location is None:
            return {"ok": False, "detail": "no [site] latitude/longitude"}
        return {"ok": True, "detail": f"{location.latitude_deg:.3f}, {location.longitude_deg:.3f}"}

    def check_timezone():
        if config is None:
            return {"ok": False, "detail": "config not loaded"}
        try:
            resolve_timezone(config.site_timezone)
        except ValueError as e:
            return {"ok": False, "detail": str(e)}
        return {"ok": True, "detail": config.site_timezone}

    settings = {}

    def check_settings():
        if config is None:
            return {"ok": False, "detail": "config not loaded"}
        try:
            horizon = config.horizon_profile()
            tiers = config.moon_tiers()
        except MoondanceError as e:
            return {"ok": False, "detail": str(e)}
        settings["horizon"] = horizon
        settings["moon_tiers"] = tiers
        return {
            "ok": True,
            "detail": f"horizon min {format_angle(horizon.lowest, precision=0)}, "
            f"moon cutoff {tiers.max_moon_phase:.0f}%",
        }

    def check_providers():
        results = {}
        if config is None:
            return results
        for provider in get_catalog_providers(config):
            try:
                count = len(provider.list_targets())
            except MoondanceError as e:
                results[f"catalog ({provider.name})"] = {"ok": False, "detail": str(e)}
            else:
                results[f"catalog ({provider.name})"] = {"ok": True, "detail": f"{count} targets"}
        return results

    checks = {
        "config": config_check,
        "site": check_site(),
        "timezone": check_timezone(),
        "settings": check_settings(),
    }
    checks.update(check_providers())

    ok = all(c["ok"] for c in checks.values())

    horizon = settings.get("horizon")
    tiers = settings.get("moon_tiers")

    if args is not None and getattr(args, "json", False):
        data = {"checks": checks}
        if horizon is not None:
            data["horizon_deg"] = horizon.as_list()
            data["moon_tiers"] = tiers.to_dict()
        payload = _json_envelope(
            command="doctor",
            ok=ok,
            data=data,
            error=None
            if ok
            else {
                "code": "doctor_failed",
                "message": "one or more checks failed",
                "details": None,
            },
        )
        print(json.dumps(payload, indent=2))
    else:
        print("Moondance Doctor Report")
        print("=======================")

        for name, result in checks.items():
            status = "OK" if result["ok"] else "MISSING"
            print(f"{name:20} : {status} ({result['detail']})")

        if horizon is not None:
            directions = "  ".join(
                f"{d.name} {format_angle(horizon.for_direction(d), precision=0)}" for d in CardinalDirection
            )
            print(f"\nHorizon: {directions}")
            print("Moon tiers")
            for i, tier in enumerate(tiers.tiers):
                print(f"  {tier.name:14} {tiers.tier_range_label(i):8} sep >= {tier.min_separation_deg:.0f}°")
            print(f"  No imaging at {tiers.max_moon_phase:.0f}% and above")

        if ok:
            print("\nReady to plan.")
        else:
            print("\nSome settings are missing or invalid.")

    return 0 if ok else 1


def run_plan(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        config = load_config(_config_path_from_args(args))
        planner = Planner(config)
        request = _build_request(args, config, planner, getattr(args, "target", None))
        if not request.targets:
            raise ValueError("At least one target is required (--target or --ra/--dec)")
        result = planner.calculate(request)
    except (ValueError, FileNotFoundError, MoondanceError) as e:
        return _handle_error("plan", args, e)

    if getattr(args, "json", False):
        payload = _json_envelope(
            command="plan",
            ok=True,
            data=json.loads(format_plan_json(result)),
            error=None,
        )
        print(json.dumps(payload, indent=2))
    elif getattr(args, "csv", False):
        sys.stdout.write(format_csv(result))
    else:
        print(format_text(result, verbose=getattr(args, "verbose", False), moon_tiers=request.moon_tiers))
    return 0


def run_suggest(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        config = load_config(_config_path_from_args(args))
        planner = Planner(config)
        request = _build_request(args, config, planner, getattr(args, "selected", None))
        candidates = planner.suggest(request)
    except (ValueError, FileNotFoundError, MoondanceError) as e:
        return _handle_error("suggest", args, e)

    if getattr(args, "json", False):
        payload = _json_envelope(
            command="suggest",
            ok=True,
            data={"suggestions": [to_jsonable(c) for c in candidates]},
            error=None,
        )
        print(json.dumps(payload, indent=2))
    else:
        print(format_suggestions_text(candidates, request.location.timezone))
    return 0


def run_scan(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        config = load_config(_config_path_from_args(args))
        planner = Planner(config)
        location = _parse_location_args(args, config)
        min_alt = args.min_alt if args.min_alt is not None else config.planner_imaging_altitude_deg
        estimates = planner.scan(location, _parse_date_arg(getattr(args, "start", None)), min_alt)
    except (ValueError, FileNotFoundError, MoondanceError) as e:
        return _handle_error("scan", args, e)

    limit = getattr(args, "limit", None)
    if getattr(args, "json", False):
        rows = estimates if limit is None else estimates[:limit]
        payload = _json_envelope(
            command="scan",
            ok=True,
            data={"estimates": [to_jsonable(e) for e in rows]},
            error=None,
        )
        print(json.dumps(payload, indent=2))
    else:
        print(format_scan_text(estimates, limit=limit))
    return 0


def run_targets(args) -> int:
    _init_logging(getattr(args, "log_level", None))
    try:
        config = load_config(_config_path_from_args(args))
        planner = Planner(config)
    except (ValueError, FileNotFoundError, MoondanceError) as e:
        return _handle_error("targets", args, e)

    targets = list(planner.catalog)
    type_filter = getattr(args, "type", None)
    if type_filter:
        targets = [t for t in targets if t.type.lower() == type_filter.lower()]

    if getattr(args, "json", False):
        payload = _json_envelope(
            command="targets",
            ok=True,
            data={"targets": [to_jsonable(t) for t in targets]},
            error=None,
        )
        print(json.dumps(payload, indent=2))
    elif getattr(args, "csv", False):
        sys.stdout.write(export_targets(targets) + "\n")
    else:
        for t in targets:
            print(f"{t.id:14} {t.name:34} {t.type:20} {t.brightness_label}")
    return 0
