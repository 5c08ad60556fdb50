# src/todomai/connectors/matrix_client.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from nio import AsyncClient, AsyncClientConfig, LoginResponse

logger = logging.getLogger(__name__)


def _session_path(store_dir: Path) -> Path:
    # Keep session tokens in a single predictable place under a gitignored local dir.
    return store_dir / "session.json"


def _safe_mkdir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except Exception as e:
        logger.warning("Failed to create directory %s: %r", path, e)


def _load_json(path: Path) -> dict[str, Any]:
    raw = path.read_text("utf-8")
    val = json.loads(raw)
    if isinstance(val, dict):
        return val
    raise ValueError("Expected JSON object")


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False), "utf-8")
    os.replace(tmp, path)
    try:
        os.chmod(path, 0o600)
    except OSError:
        # Not critical on Windows or restricted FS.
        logger.debug("chmod 600 failed for %s", path, exc_info=True)


def _restore_session(client: AsyncClient, session_file: Path) -> bool:
    data = _load_json(session_file)

    access_token = data.get("access_token")
    sess_user_id = data.get("user_id")
    device_id = data.get("device_id")

    if not access_token or not sess_user_id or not device_id:
        raise ValueError("session.json is missing required fields")

    client.access_token = str(access_token)
    client.user_id = str(sess_user_id)
    client.device_id = str(device_id)
    return True


async def create_matrix_client(settings) -> AsyncClient | None:
    """
    Create a plain (unencrypted) Matrix AsyncClient for the task bot.

    session.json lets restarts reuse the access token/device id without logging in again.
    It holds credentials and must stay under the gitignored data dir.
    """
    homeserver = (getattr(settings, "matrix_homeserver", "") or "").strip()
    user_id = (getattr(settings, "matrix_user_id", "") or "").strip()
    password = (getattr(settings, "matrix_password", "") or "").strip()
    store_dir = Path(getattr(settings, "matrix_store_path", Path(".local/todomai/matrix_store")))

    if not homeserver or not user_id:
        logger.error("Matrix is not configured: set TODOMAI_MATRIX_HOMESERVER and TODOMAI_MATRIX_USER_ID")
        return None

    _safe_mkdir(store_dir)
    session_file = _session_path(store_dir)

    config = AsyncClientConfig(encryption_enabled=False, store_sync_tokens=False)
    client = AsyncClient(homeserver, user_id, config=config)

    # ---- Session restore ----
    if session_file.exists():
        try:
            _restore_session(client, session_file)
            logger.info("Matrix session restored for %s", client.user_id)
            return client
        except Exception as e:
            logger.warning("Failed to restore Matrix session.json, will try password login: %r", e)

    # ---- Password login bootstrap ----
    if not password:
        logger.error(
            "Matrix session.json not found and password is not set. "
            "Set TODOMAI_MATRIX_PASSWORD once to bootstrap a session."
        )
        await client.close()
        return None

    device_name = f"{getattr(settings, 'app_name', 'todomai')} (Python)"
    logger.info("Logging in to Matrix to bootstrap a new session (device_name=%r)...", device_name)

    resp = await client.login(password=password, device_name=device_name)

    if not isinstance(resp, LoginResponse):
        logger.error("Matrix login failed: %r", resp)
        await client.close()
        return None

    session_data = {
        "access_token": resp.access_token,
        "user_id": resp.user_id,
        "device_id": resp.device_id,
    }

    try:
        _atomic_write_json(session_file, session_data)
        logger.info("Matrix session saved to %s (user=%s)", session_file, resp.user_id)
    except OSError as e:
        # The client is logged in; we just have to log in again next time.
        logger.error("Failed to write Matrix session.json (%s): %r", session_file, e)

    return client
