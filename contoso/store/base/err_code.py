import enum


class ErrCode(enum.Enum):
    SUCCESS = 0

    # ---------- Client / semantic errors (non-retryable) ----------
    KEY_NOT_FOUND = 12           # read/update/delete on a missing record

    # ---------- Concurrency (retryable after merge) ----------
    VERSION_CONFLICT = 32        # version token no longer matches


class StoreResult:
    def __init__(self, ok: bool, value=None, err=ErrCode.SUCCESS):
        self.ok = ok
        self.value = value
        self.err = err

    @property
    def not_found(self) -> bool:
        return self.err is ErrCode.KEY_NOT_FOUND

    @property
    def conflict(self) -> bool:
        return self.err is ErrCode.VERSION_CONFLICT

    def __repr__(self):
        return f"StoreResult(ok={self.ok}, err={self.err.name}, value={self.value!r})"
