"""任务筛选

服务端筛选（priority / 完成状态）由各 Repository 翻译为查询条件；
客户端筛选（search / tags）在此实现为纯函数，相同输入总得到相同输出。
"""

from collections.abc import Iterable

from .models import Task, TaskFilters, TaskStatusFilter


def matches_search(task: Task, search: str | None) -> bool:
    """标题或描述包含搜索词（大小写不敏感）"""
    if not search:
        return True
    needle = search.lower()
    if needle in task.title.lower():
        return True
    return task.description is not None and needle in task.description.lower()


def matches_tags(task: Task, tags: Iterable[str]) -> bool:
    """任务至少包含一个请求的标签；未请求标签时总是匹配"""
    wanted = set(tags)
    if not wanted:
        return True
    return not wanted.isdisjoint(task.tags)


def matches_server_filters(task: Task, filters: TaskFilters) -> bool:
    """内存版服务端筛选，供本地存储和测试替身使用"""
    if filters.priority is not None and task.priority != filters.priority:
        return False
    if filters.status == TaskStatusFilter.COMPLETED and not task.is_completed:
        return False
    if filters.status == TaskStatusFilter.PENDING and task.is_completed:
        return False
    return True


def apply_client_filters(tasks: Iterable[Task], filters: TaskFilters | None) -> list[Task]:
    """应用客户端筛选，保持输入顺序"""
    if filters is None:
        return list(tasks)
    return [
        task
        for task in tasks
        if matches_search(task, filters.search) and matches_tags(task, filters.tags)
    ]
