from catalog.models import ProductDraft

RESERVED_PREFIX = "#max"

# Drafts carrying this master variant attribute reference an incomplete
# product type and are rejected by the catalog; drop them until the data is fixed.
KNOWN_BAD_ATTRIBUTE = ("designer", "juliat")


def is_useful(draft: ProductDraft, primary_locale: str = "en", secondary_locale: str = "de") -> bool:
    """Named in the primary locale and not a reserved entry in the secondary one."""
    if not draft.name.get(primary_locale):
        return False
    return not (draft.name.get(secondary_locale) or "").startswith(RESERVED_PREFIX)


def is_known_bad(draft: ProductDraft) -> bool:
    name, value = KNOWN_BAD_ATTRIBUTE
    return draft.master_variant.has_attribute(name, value)
