import structlog
from catalog.models import CustomerGroup, CustomerGroupDraft
from pipeline.chunks import await_with_timeout
from pipeline.context import JobResources, StepContext, promotes
from pipeline.errors import AmbiguousMatchError
from pipeline.state import JobState

logger = structlog.get_logger(__name__)

RESOURCE = "customer-groups"


@promotes("customer_group_id")
async def customer_group_node(state: JobState, local: StepContext, res: JobResources) -> None:
    name = res.settings.customer_group_name

    async def find_or_create() -> CustomerGroup:
        matches = await res.retry.call(lambda: res.client.find_by_name(RESOURCE, name, CustomerGroup))
        if len(matches) > 1:
            raise AmbiguousMatchError(RESOURCE, name, len(matches))
        if matches:
            return matches[0]
        draft = CustomerGroupDraft(group_name=name)
        created = await res.retry.call(lambda: res.client.create(RESOURCE, draft.to_wire()))
        logger.info("customer_group_created", name=name)
        return CustomerGroup.model_validate(created)

    group = await await_with_timeout(
        find_or_create(), res.settings.customer_group_timeout, f"resolve customer group '{name}'"
    )
    local["customer_group_id"] = group.id
