import json, sys, time, os
from .secrets import redact_dict

LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}

_threshold = LEVELS.get(os.getenv("MODELSYNC_LOG_LEVEL", "warn").upper(), 30)

def set_level(lvl: str) -> None:
    global _threshold
    key = lvl.upper()
    if key == "WARNING":
        key = "WARN"
    if key not in LEVELS:
        raise ValueError(f"unknown log level: {lvl}")
    _threshold = LEVELS[key]

def log(lvl: str, where: str, msg: str, **kw):
    if LEVELS.get(lvl.upper(), 20) < _threshold:
        return
    # Records may carry API keys or bearer tokens
    redacted_kw = redact_dict(kw)

    # stdout is reserved for command output
    if os.getenv("MODELSYNC_LOG_FORMAT", "json") == "json":
        rec = {"ts": time.time(), "lvl": lvl, "where": where, "msg": msg}
        rec.update(redacted_kw)
        sys.stderr.write(json.dumps(rec, ensure_ascii=False, default=str) + "\n")
    else:
        redacted_msg = redact_dict({"msg": msg})["msg"]
        sys.stderr.write(f"[{lvl}] {where}: {redacted_msg} {redacted_kw}\n")
    sys.stderr.flush()
