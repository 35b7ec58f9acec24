"""Store lifecycle: built once at startup, handed to routes through Depends."""
from __future__ import annotations

from fastapi import FastAPI, Request

from .db import PoolHolder
from .db.order_store import RemoteOrderStore
from .localstore.json_store import LocalFallbackStore
from .settings import Settings


def init_stores(app: FastAPI, cfg: Settings) -> None:
    app.state.remote_store = RemoteOrderStore(PoolHolder(cfg))
    app.state.local_store = LocalFallbackStore(cfg.data_dir)


async def close_stores(app: FastAPI) -> None:
    remote = getattr(app.state, "remote_store", None)
    if remote is not None:
        await remote.close()


def get_remote_store(request: Request) -> RemoteOrderStore:
    return request.app.state.remote_store


def get_local_store(request: Request) -> LocalFallbackStore:
    return request.app.state.local_store
