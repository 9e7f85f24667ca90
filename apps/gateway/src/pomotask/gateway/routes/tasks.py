"""任务与标签路由

GET    /api/tasks: 任务列表（priority / status 服务端筛选，search / tags 客户端筛选）。
POST   /api/tasks: 创建任务（按名称关联标签）。
GET    /api/tasks/{task_id}: 任务详情。
PATCH  /api/tasks/{task_id}: 部分更新，只提交请求体中出现的字段。
DELETE /api/tasks/{task_id}: 删除任务。
POST   /api/tasks/{task_id}/toggle: 翻转完成状态。
GET    /api/tags, POST /api/tags: 标签列表 / 创建标签。
"""

from fastapi import APIRouter, Depends, Query
from pomotask.core.exceptions import PomodoroError
from pomotask.core.models import (
    Priority,
    Tag,
    Task,
    TaskCreate,
    TaskFilters,
    TaskStatusFilter,
    TaskUpdate,
)
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse, Response

from ..deps import get_tasks
from ..errors import domain_error_response, error_response

router = APIRouter()


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[Task]


class TagListResponse(BaseModel):
    tags: list[Tag]


class CreateTagRequest(BaseModel):
    name: str = Field(min_length=1)
    color: str | None = None


def _task_json(task: Task, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=task.model_dump(mode="json"))


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    priority: Priority | None = Query(default=None, description="按优先级筛选"),
    status: TaskStatusFilter | None = Query(default=None, description="completed / pending"),
    search: str | None = Query(default=None, description="标题或描述包含（不区分大小写）"),
    tags: list[str] = Query(default=[], description="包含任一标签"),
    repo=Depends(get_tasks),
):
    """查询任务列表，按 created_at 倒序"""
    filters = TaskFilters(priority=priority, status=status, search=search, tags=tags)
    try:
        tasks = await repo.list(filters)
    except PomodoroError as e:
        return domain_error_response(e)
    return TaskListResponse(tasks=tasks)


@router.post("/api/tasks", status_code=201, response_model=Task)
async def create_task(fields: TaskCreate, repo=Depends(get_tasks)):
    try:
        task = await repo.create(fields)
    except PomodoroError as e:
        return domain_error_response(e)
    return _task_json(task, status_code=201)


@router.get("/api/tasks/{task_id}", response_model=Task)
async def get_task(task_id: str, repo=Depends(get_tasks)):
    try:
        task = await repo.get(task_id)
    except PomodoroError as e:
        return domain_error_response(e)
    if task is None:
        return error_response(404, "NOT_FOUND", f"task 不存在: {task_id}")
    return _task_json(task)


@router.patch("/api/tasks/{task_id}", response_model=Task)
async def update_task(task_id: str, changes: TaskUpdate, repo=Depends(get_tasks)):
    try:
        task = await repo.update(task_id, changes)
    except PomodoroError as e:
        return domain_error_response(e)
    return _task_json(task)


@router.delete("/api/tasks/{task_id}", status_code=204)
async def delete_task(task_id: str, repo=Depends(get_tasks)):
    try:
        await repo.delete(task_id)
    except PomodoroError as e:
        return domain_error_response(e)
    return Response(status_code=204)


@router.post("/api/tasks/{task_id}/toggle", response_model=Task)
async def toggle_task(task_id: str, repo=Depends(get_tasks)):
    """翻转任务完成状态"""
    try:
        task = await repo.toggle_completed(task_id)
    except PomodoroError as e:
        return domain_error_response(e)
    return _task_json(task)


@router.get("/api/tags", response_model=TagListResponse)
async def list_tags(repo=Depends(get_tasks)):
    try:
        tags = await repo.list_tags()
    except PomodoroError as e:
        return domain_error_response(e)
    return TagListResponse(tags=tags)


@router.post("/api/tags", status_code=201, response_model=Tag)
async def create_tag(req: CreateTagRequest, repo=Depends(get_tasks)):
    try:
        tag = await repo.create_tag(req.name, req.color)
    except PomodoroError as e:
        return domain_error_response(e)
    return JSONResponse(status_code=201, content=tag.model_dump(mode="json"))
