from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

import structlog
from langchain_core.runnables import RunnableConfig

from catalog.base import CatalogClient
from catalog.models import ProductDraft
from config.settings import Settings
from pipeline.chunks import RetryPolicy
from pipeline.errors import ConfigurationError, PromotionError
from pipeline.state import JobState

logger = structlog.get_logger(__name__)


class StepContext(dict):
    """Step-local scratch space; only promoted keys outlive the step."""


@dataclass
class JobResources:
    client: CatalogClient
    settings: Settings
    records: Optional[Iterable[ProductDraft]] = None
    retry: RetryPolicy = RetryPolicy()


Tasklet = Callable[[JobState, StepContext, JobResources], Awaitable[None]]


def resources(config: Optional[RunnableConfig]) -> JobResources:
    res = ((config or {}).get("configurable") or {}).get("resources")
    if res is None:
        raise ConfigurationError("job resources missing from run config")
    return res


def promote(shared: JobState, local: StepContext, keys: Iterable[str]) -> Dict[str, Any]:
    increment: Dict[str, Any] = {}
    for key in keys:
        if key not in local:
            raise PromotionError(f"step declared '{key}' promotable but never set it")
        if getattr(shared, key, None) is not None:
            raise PromotionError(f"'{key}' was already promoted by an earlier step")
        increment[key] = local[key]
    return increment


def promotes(*keys: str):
    """
    Turn ``tasklet(state, local, resources)`` into a graph node that returns
    only ``keys`` from the step-local context once the tasklet succeeds.
    """
    for key in keys:
        if key not in JobState.model_fields:
            raise ValueError(f"'{key}' is not a JobState field")

    def wrap(tasklet: Tasklet):
        # no functools.wraps: langgraph reads the signature to pass ``config``
        async def node(state: JobState, config: RunnableConfig) -> Dict[str, Any]:
            local = StepContext()
            await tasklet(state, local, resources(config))
            increment = promote(state, local, keys)
            logger.info("step_completed", step=tasklet.__name__, promoted=sorted(increment))
            return increment

        node.__name__ = tasklet.__name__
        node.__doc__ = tasklet.__doc__
        node.promotable = keys
        return node

    return wrap
