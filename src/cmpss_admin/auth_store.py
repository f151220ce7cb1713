from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_data_dir
from pydantic import ValidationError

from .models import Identity

logger = logging.getLogger(__name__)

TOKEN_KEY = "access_token"
IDENTITY_KEY = "admin_data"


@dataclass(frozen=True)
class StoredSession:
    access_token: str
    identity: Identity


@dataclass
class AuthStore:
    """Durable per-user storage for the credential and identity.

    Both values live in one JSON document under the keys ``access_token`` and
    ``admin_data`` (the identity, itself JSON-encoded). They are replaced in a
    single file rename, so a reader never sees one without the other.
    """

    app_name: str = "cmpss-admin"
    filename: str = "session.json"
    directory: Path | None = None

    def _path(self) -> Path:
        base = Path(self.directory) if self.directory else Path(user_data_dir(self.app_name, "CMPSS"))
        base.mkdir(parents=True, exist_ok=True)
        return base / self.filename

    def save(self, access_token: str, identity: Identity) -> None:
        path = self._path()
        document = {
            TOKEN_KEY: access_token,
            IDENTITY_KEY: identity.model_dump_json(by_alias=True),
        }
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".session-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2)
            try:
                os.chmod(tmp_name, 0o600)
            except OSError:
                pass
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load(self) -> StoredSession | None:
        path = self._path()
        if not path.exists():
            return None
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("session_store_unreadable", extra={"path": str(path)})
            self.clear()
            return None
        token = document.get(TOKEN_KEY) if isinstance(document, dict) else None
        raw_identity = document.get(IDENTITY_KEY) if isinstance(document, dict) else None
        if not token or not isinstance(raw_identity, str):
            logger.warning("session_store_incomplete", extra={"path": str(path)})
            self.clear()
            return None
        try:
            identity = Identity.model_validate_json(raw_identity)
        except ValidationError:
            logger.warning("session_store_identity_invalid", extra={"path": str(path)})
            self.clear()
            return None
        return StoredSession(access_token=str(token), identity=identity)

    def clear(self) -> None:
        path = self._path()
        path.unlink(missing_ok=True)
