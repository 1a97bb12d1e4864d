import pytest

from catalog.base import RemoteRejectionError
from conftest import make_draft
from pipeline.graph import STEPS, build_graph, run_job


def test_steps_run_in_fixed_order():
    assert [name for name, _ in STEPS] == [
        "customer_group", "tax_category", "product_types", "import_products", "publish_products",
    ]
    assert build_graph() is not None


@pytest.mark.asyncio
async def test_end_to_end_import(client, settings):
    client.seed("product-types", name="Furniture", key="furniture")
    client.seed("categories", key="living", name={"en": "Living"}, slug={"en": "living"})
    records = [make_draft(en="Chair"), make_draft(en=""), make_draft(en="Box", de="#max-exclude")]

    summary = await run_job(settings, client=client, records=records)

    assert len(client.created("products")) == 1
    assert summary["counts"] == {
        "categories": 1,
        "product_types": 1,
        "read": 3,
        "filtered": 2,
        "excluded": 0,
        "created": 1,
        "published": 1,
    }
    assert summary["customer_group_id"] == client.store["customer-groups"][0]["id"]
    assert summary["tax_category_id"] == client.store["tax-categories"][0]["id"]
    assert all(p["masterData"]["published"] for p in client.store["products"])


@pytest.mark.asyncio
async def test_second_run_reuses_reference_data(client, settings):
    await run_job(settings, client=client, records=[])
    await run_job(settings, client=client, records=[])
    assert len(client.store["customer-groups"]) == 1
    assert len(client.store["tax-categories"]) == 1


@pytest.mark.asyncio
async def test_publish_covers_preexisting_products(client, settings):
    client.seed("products", masterData={"published": False})
    summary = await run_job(settings, client=client, records=[make_draft(en="Chair")])
    assert summary["counts"]["published"] == 2


@pytest.mark.asyncio
async def test_first_failure_aborts_remaining_steps(client, settings):
    client.reject = lambda resource, draft: resource == "products"
    with pytest.raises(RemoteRejectionError):
        await run_job(settings, client=client, records=[make_draft(en="Chair")])
    assert client.updated("products") == []
    # reference data created before the failure stays in place
    assert len(client.store["customer-groups"]) == 1


@pytest.mark.asyncio
async def test_reads_products_resource_from_settings(client, settings, tmp_path):
    path = tmp_path / "products.csv"
    path.write_text(
        "productType,sku,name.en,name.de,attribute.designer\n"
        "furniture,A,Chair,Stuhl,\n"
        "furniture,B,Lamp,Lampe,juliat\n"
        "furniture,C,Table,Tisch,\n",
        encoding="utf-8",
    )
    s = settings.model_copy(update={"products_resource": str(path), "max_products": 2})
    summary = await run_job(s, client=client)
    assert summary["counts"]["read"] == 2
    assert summary["counts"]["excluded"] == 1
    assert [p["masterVariant"]["sku"] for p in client.created("products")] == ["A"]


@pytest.mark.asyncio
async def test_supplied_records_are_capped(client, settings):
    s = settings.model_copy(update={"max_products": 2})
    records = [make_draft(en=f"Chair {i}") for i in range(5)]
    summary = await run_job(s, client=client, records=records)
    assert summary["counts"]["read"] == 2
    assert len(client.created("products")) == 2
