import httpx
import pytest
from sqlalchemy import func, select

from vantera_ingest.adapters.repos.listings import CityRepository
from vantera_ingest.models import City, ImportRun, ImportRunStatus, Listing, ListingMedia
from vantera_ingest.service_layer.use_cases import attom_properties
from vantera_ingest.service_layer.use_cases.attom_properties import AttomIngestParams, ingest_attom_properties


def _media(*urls):
    return {
        "property": {
            "media": {
                "photos": [
                    {"url": u, "sequenceNumber": len(urls) - i, "caption": f"photo {i}"}
                    for i, u in enumerate(urls)
                ]
            }
        }
    }


@pytest.fixture
def miami_market(attom_fake, make_attom_row):
    """One $2.5M house and one $1.2M house around the Miami centroid."""
    high = make_attom_row(1001, "1 OCEAN DR", attom_id=5001)
    low = make_attom_row(1002, "2 BAY RD", attom_id=5002)
    attom_fake.snapshot = {"property": [high, low]}
    attom_fake.details = {"1001": {"property": [high]}, "1002": {"property": [low]}}
    attom_fake.avm = {"1 OCEAN DR": 2_500_000.0, "2 BAY RD": 1_200_000.0}
    attom_fake.media = {"5001": _media("https://img/1.jpg", "https://img/2.jpg")}
    return attom_fake


async def _count(session, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_end_to_end_miami_run(session, miami_market):
    outcome = await ingest_attom_properties(session, miami_market.client(), AttomIngestParams(city="miami"))

    assert outcome.status_code == 200
    body = outcome.body
    assert body["ok"] is True
    assert (body["scanned"], body["created"], body["skipped"], body["errors"]) == (2, 1, 1, 0)
    assert body["breakdown"]["skippedBelowMinValue"] == 1
    assert body["errorSamples"] == []
    assert (body["requestedCity"], body["queryCity"], body["attachCity"]) == ("miami", "miami", "miami")

    listing = (await session.execute(select(Listing))).scalars().one()
    assert listing.source == "attom"
    assert listing.source_id == "1001"
    assert listing.price == 2_500_000
    assert listing.currency == "USD"
    assert listing.price_confidence == 85
    assert listing.data_completeness == 100
    assert listing.built_sqft == 4000
    assert listing.built_m2 == 372
    assert listing.plot_sqft == 21780
    assert listing.title == "Miami · SFR"
    assert listing.slug == "miami-1-ocean-dr-miami-fl-33139-1001"
    assert listing.neighborhood == "Miami Beach"

    media = (
        await session.execute(
            select(ListingMedia).where(ListingMedia.listing_id == listing.id).order_by(ListingMedia.sort_order)
        )
    ).scalars().all()
    # sorted by ATTOM sequenceNumber, not payload order
    assert [m.url for m in media] == ["https://img/2.jpg", "https://img/1.jpg"]
    assert listing.cover_media_id == media[0].id
    assert {m.source for m in media} == {"ATTOM"}

    run = await session.get(ImportRun, body["runId"])
    assert run.status == ImportRunStatus.SUCCEEDED
    assert run.source == "attom"
    assert run.region == "US-FL"
    assert run.created == 1


@pytest.mark.asyncio
async def test_second_run_is_idempotent(session, miami_market):
    await ingest_attom_properties(session, miami_market.client(), AttomIngestParams(city="miami"))
    again = await ingest_attom_properties(session, miami_market.client(), AttomIngestParams(city="miami"))

    assert again.body["created"] == 0
    assert again.body["breakdown"]["skippedExisting"] == 1
    assert again.body["breakdown"]["skippedBelowMinValue"] == 1
    assert await _count(session, Listing) == 1
    assert await _count(session, ImportRun) == 2


@pytest.mark.asyncio
async def test_dry_run_counts_but_writes_nothing(session, miami_market):
    outcome = await ingest_attom_properties(
        session, miami_market.client(), AttomIngestParams(city="miami", dry_run=True)
    )

    assert outcome.body["created"] == 1
    assert await _count(session, Listing) == 0
    assert not any(p.endswith("/property/detail/media") for p in miami_market.paths())


@pytest.mark.asyncio
async def test_detail_failure_is_counted_and_sampled(session, miami_market):
    miami_market.details["1001"] = 500

    outcome = await ingest_attom_properties(session, miami_market.client(), AttomIngestParams(city="miami"))

    body = outcome.body
    assert outcome.status_code == 200
    assert body["ok"] is False
    assert body["errors"] == 1
    assert body["breakdown"]["skippedDetailError"] == 1
    assert body["errorSamples"][0]["step"] == "attom:/property/detail"

    run = await session.get(ImportRun, body["runId"])
    assert run.status == ImportRunStatus.SUCCEEDED
    assert "finished with 1 errors" in run.message


@pytest.mark.asyncio
async def test_avm_failure_falls_back_to_assessment(session, miami_market, make_attom_row):
    detail = make_attom_row(1001, "1 OCEAN DR", attom_id=5001)
    detail["assessment"] = {"market": {"mktTtlValue": 3_100_000}}
    miami_market.details["1001"] = {"property": [detail]}
    miami_market.avm["1 OCEAN DR"] = 500

    outcome = await ingest_attom_properties(session, miami_market.client(), AttomIngestParams(city="miami"))

    assert outcome.body["errors"] == 0
    listing = (await session.execute(select(Listing))).scalars().one()
    assert listing.price == 3_100_000
    assert listing.price_confidence == 55


@pytest.mark.asyncio
async def test_min_avm_floor_applies_to_direct_avm(session, miami_market):
    outcome = await ingest_attom_properties(
        session, miami_market.client(), AttomIngestParams(city="miami", min_avm=3_000_000)
    )

    assert outcome.body["created"] == 0
    assert outcome.body["breakdown"]["skippedMinAvm"] == 2


@pytest.mark.asyncio
async def test_non_residential_and_missing_address_are_skipped(session, attom_fake, make_attom_row):
    shop = make_attom_row(2001, "9 RETAIL WAY", proptype="COMMERCIAL")
    nowhere = make_attom_row(2002, None, line2=None)
    attom_fake.snapshot = {"property": [shop, nowhere]}
    attom_fake.details = {"2001": {"property": [shop]}}

    outcome = await ingest_attom_properties(session, attom_fake.client(), AttomIngestParams(city="miami"))

    breakdown = outcome.body["breakdown"]
    assert breakdown["skippedNotResidential"] == 1
    assert breakdown["skippedMissingAddress"] == 1
    assert outcome.body["errors"] == 0


@pytest.mark.asyncio
async def test_snapshot_criteria_filters(session, miami_market):
    outcome = await ingest_attom_properties(
        session, miami_market.client(), AttomIngestParams(city="miami", min_beds=6)
    )
    assert outcome.body["breakdown"]["skippedMinBeds"] == 2

    outcome = await ingest_attom_properties(
        session, miami_market.client(), AttomIngestParams(city="miami", types=["CONDO"])
    )
    assert outcome.body["breakdown"]["skippedTypeWhitelist"] == 2


@pytest.mark.asyncio
async def test_snapshot_failure_fails_the_run(session, attom_fake):
    attom_fake.snapshot = 500

    outcome = await ingest_attom_properties(session, attom_fake.client(), AttomIngestParams(city="miami"))

    assert outcome.status_code == 502
    assert outcome.body["ok"] is False
    assert outcome.body["step"] == "attom:/property/snapshot"
    assert outcome.body["status"] == 500

    run = await session.get(ImportRun, outcome.body["runId"])
    assert run.status == ImportRunStatus.FAILED
    assert run.errors == 1
    assert run.error_samples[0]["step"] == "attom:/property/snapshot"


@pytest.mark.asyncio
async def test_success_with_no_result_is_an_empty_run(session, attom_fake):
    attom_fake.snapshot = httpx.Response(460, text='{"status":{"msg":"SuccessWithNoResult"}}')

    outcome = await ingest_attom_properties(session, attom_fake.client(), AttomIngestParams(city="miami"))

    assert outcome.status_code == 200
    assert outcome.body["scanned"] == 0
    assert outcome.body["ok"] is True


@pytest.mark.asyncio
async def test_unknown_city_creates_no_run(session, attom_fake):
    outcome = await ingest_attom_properties(session, attom_fake.client(), AttomIngestParams(city="paris"))

    assert outcome.status_code == 400
    assert outcome.body["runId"] is None
    assert await _count(session, ImportRun) == 0
    assert attom_fake.calls == []


@pytest.mark.asyncio
async def test_costa_del_sol_lock_attaches_to_marbella(session, miami_market):
    outcome = await ingest_attom_properties(
        session, miami_market.client(), AttomIngestParams(city="estepona", min_value=1_000_000)
    )

    body = outcome.body
    assert (body["queryCity"], body["attachCity"]) == ("estepona", "marbella")
    assert body["created"] == 2

    slugs = (await session.execute(select(City.slug))).scalars().all()
    assert slugs == ["marbella"]

    listings = (await session.execute(select(Listing))).scalars().all()
    assert {listing.neighborhood for listing in listings} == {"Estepona"}
    assert all(listing.slug.startswith("marbella-") for listing in listings)

    run = await session.get(ImportRun, body["runId"])
    assert run.region == "ES-AN"
    assert run.params["costaDelSolLocked"] is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "avm, created, skipped",
    [(2_500_000.0, 1, 0), (1_200_000.0, 0, 1)],
)
async def test_single_family_value_gate(session, attom_fake, make_attom_row, avm, created, skipped):
    row = make_attom_row(3001, "7 STAR IS", attom_id=None, proptype="Single Family")
    attom_fake.snapshot = {"property": [row]}
    attom_fake.details = {"3001": {"property": [row]}}
    attom_fake.avm = {"7 STAR IS": avm}

    outcome = await ingest_attom_properties(
        session,
        attom_fake.client(),
        AttomIngestParams(city="miami", radius=0.5, limit=25, min_value=2_000_000),
    )

    body = outcome.body
    assert (body["created"], body["skipped"]) == (created, skipped)
    assert body["breakdown"]["skippedBelowMinValue"] == skipped

    listing = (await session.execute(select(Listing))).scalars().first()
    if created:
        assert "Single Family" in listing.property_type
        assert listing.price == 2_500_000
        assert listing.currency == "USD"
    else:
        assert listing is None


@pytest.mark.asyncio
async def test_long_addresses_keep_distinct_slugs(session, attom_fake, make_attom_row):
    street = "1 " + "GRAND PALM ESTATES BOULEVARD " * 4
    rows = [make_attom_row(4001, street + "UNIT A"), make_attom_row(4002, street + "UNIT B")]
    attom_fake.snapshot = {"property": rows}
    attom_fake.details = {"4001": {"property": [rows[0]]}, "4002": {"property": [rows[1]]}}
    attom_fake.avm = {rows[0]["address"]["line1"]: 2_500_000.0, rows[1]["address"]["line1"]: 2_600_000.0}

    outcome = await ingest_attom_properties(session, attom_fake.client(), AttomIngestParams(city="miami"))

    body = outcome.body
    assert (body["created"], body["errors"]) == (2, 0)
    assert body["breakdown"]["skippedExisting"] == 0
    slugs = sorted((await session.execute(select(Listing.slug))).scalars().all())
    assert [s.rsplit("-", 1)[1] for s in slugs] == ["4001", "4002"]
    assert all(len(s) <= 90 for s in slugs)


@pytest.mark.asyncio
async def test_media_failure_keeps_the_listing_and_the_samples_clean(session, miami_market):
    miami_market.media["5001"] = 500

    outcome = await ingest_attom_properties(session, miami_market.client(), AttomIngestParams(city="miami"))

    body = outcome.body
    assert body["ok"] is True
    assert (body["created"], body["errors"]) == (1, 0)
    assert body["errorSamples"] == []
    assert await _count(session, Listing) == 1
    assert await _count(session, ListingMedia) == 0


@pytest.mark.asyncio
async def test_unexpected_item_error_is_counted_and_the_loop_continues(session, miami_market, monkeypatch):
    real = attom_properties.compute_data_completeness
    calls = []

    def _flaky(**kwargs):
        calls.append(kwargs["address"])
        if len(calls) == 1:
            raise ValueError("bad row")
        return real(**kwargs)

    monkeypatch.setattr(attom_properties, "compute_data_completeness", _flaky)

    outcome = await ingest_attom_properties(
        session, miami_market.client(), AttomIngestParams(city="miami", min_value=1_000_000)
    )

    body = outcome.body
    assert outcome.status_code == 200
    assert body["ok"] is False
    assert (body["scanned"], body["created"], body["errors"]) == (2, 1, 1)
    assert body["errorSamples"] == [{"step": "loop", "message": "bad row"}]
    assert await _count(session, Listing) == 1

    run = await session.get(ImportRun, body["runId"])
    assert run.status == ImportRunStatus.SUCCEEDED
    assert run.errors == 1


@pytest.mark.asyncio
async def test_unexpected_route_error_fails_the_run(session, miami_market, monkeypatch):
    async def _boom(self, preset):
        raise RuntimeError("city table locked")

    monkeypatch.setattr(CityRepository, "upsert_preset", _boom)

    outcome = await ingest_attom_properties(session, miami_market.client(), AttomIngestParams(city="miami"))

    assert outcome.status_code == 500
    assert outcome.body["ok"] is False
    assert outcome.body["message"] == "city table locked"
    assert outcome.body["errorSamples"] == [{"step": "route", "message": "city table locked"}]

    run = await session.get(ImportRun, outcome.body["runId"])
    assert run.status == ImportRunStatus.FAILED
    assert run.message == "Route failed"
    assert run.errors == 1
    assert run.finished_at is not None
    assert miami_market.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["radius", "min_value", "min_avm", "min_beds"])
async def test_non_finite_numbers_are_rejected_before_the_run(session, attom_fake, field):
    params = AttomIngestParams(city="miami", **{field: float("nan")})

    outcome = await ingest_attom_properties(session, attom_fake.client(), params)

    assert outcome.status_code == 400
    assert outcome.body["runId"] is None
    assert "finite" in outcome.body["message"]
    assert await _count(session, ImportRun) == 0
    assert attom_fake.calls == []
