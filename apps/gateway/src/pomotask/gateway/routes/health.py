"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查。local 模式探测 SQLite 连接与数据目录磁盘空间，
         始终报告计时器状态；profile=backend/full 时额外探测托管后端。
"""

import shutil
from pathlib import Path

import structlog
from fastapi import APIRouter, Query, Request
from pomotask.core.config import get_db_path
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()

SKIPPED = "skipped"


async def _check_sqlite(store_group) -> tuple[str, bool]:
    if store_group is None:
        return SKIPPED, True
    try:
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
    except Exception as e:
        return f"error: {e}", False
    return "ok", True


def _free_disk_mb(db_path: str) -> tuple[int, bool]:
    # 数据库目录可能尚未创建，向上找到第一个存在的目录
    path = Path(db_path).resolve().parent
    while not path.exists() and path != path.parent:
        path = path.parent
    try:
        return shutil.disk_usage(path).free // (1024 * 1024), True
    except OSError:
        return 0, False


async def _check_backend(rest_client) -> tuple[str, bool]:
    if rest_client is None:
        return SKIPPED, True
    try:
        healthy = await rest_client.health_check()
    except Exception as e:
        log.warning("health_check_error", error=str(e))
        healthy = False
    return ("ok", True) if healthy else ("unreachable", False)


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(
    request: Request,
    profile: str | None = Query(
        default=None,
        description="core（默认）仅本地检查；backend/full 包含托管后端健康检查",
    ),
):
    """Readiness 检查，任一检查失败返回 503"""
    effective_profile = profile or "core"
    state = request.app.state
    store_group = getattr(state, "store_group", None)
    engine = getattr(state, "engine", None)

    checks: dict = {}
    results: list[bool] = []

    checks["sqlite"], ok = await _check_sqlite(store_group)
    results.append(ok)

    checks["disk_space_mb"], ok = _free_disk_mb(get_db_path())
    results.append(ok)

    checks["timer"] = engine.state.value if engine is not None else "missing"
    results.append(engine is not None)

    if effective_profile in ("backend", "full"):
        checks["backend"], ok = await _check_backend(getattr(state, "rest_client", None))
        results.append(ok)
    else:
        checks["backend"] = SKIPPED

    all_ok = all(results)
    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "profile": effective_profile,
            "mode": "local" if store_group is not None else "remote",
            "checks": checks,
        },
    )
