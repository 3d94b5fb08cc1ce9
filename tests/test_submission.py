import pytest
from sqlalchemy import text

from seccheck.core.exceptions import ValidationError
from seccheck.schemas.common import ScoreSource, WriteStatus
from seccheck.services.lead_intake_service import as_answer_mapping
from seccheck.services.scoring import EMPTY_SCORE, score


class TestSubmitLead:
    @pytest.mark.asyncio
    async def test_full_schema_persists_everything(
        self, full_session, repos, contact, strong_answers
    ):
        r = repos(full_session)
        answers = dict(strong_answers, tools=["edr", "siem"], notes=None, mfa=True)

        result = await r.intake().submit_lead(contact, answers)
        detail = await r.query().get_lead_detail(result.lead_id)

        assert result.degraded is False
        assert result.answers_write.status == WriteStatus.persisted
        assert result.answers_write.written == len(answers)
        assert result.score_write.status == WriteStatus.persisted
        assert result.score == score(strong_answers)
        assert detail.score_source == ScoreSource.persisted
        assert detail.score == result.score
        assert detail.answers["tools"] == "edr, siem"
        assert detail.answers["notes"] == ""
        assert detail.answers["mfa"] == "true"
        assert detail.lead.company_name == "Muster GmbH"

    @pytest.mark.asyncio
    async def test_missing_auxiliary_tables_degrade_but_keep_the_lead(
        self, leads_only_session, repos, contact, strong_answers
    ):
        r = repos(leads_only_session)

        result = await r.intake().submit_lead(contact, strong_answers)
        detail = await r.query().get_lead_detail(result.lead_id)

        assert result.degraded is True
        assert result.answers_write.status == WriteStatus.skipped
        assert result.answers_write.failed == len(strong_answers)
        assert result.score_write.status == WriteStatus.skipped
        # the caller still sees the score computed from the submission
        assert result.score.score_total == 99
        assert detail.answers == {}
        assert detail.score == EMPTY_SCORE
        assert detail.score_source == ScoreSource.computed

    @pytest.mark.asyncio
    async def test_missing_scores_table_is_recomputed_from_answers(
        self, no_scores_session, repos, contact, strong_answers
    ):
        r = repos(no_scores_session)

        result = await r.intake().submit_lead(contact, strong_answers)
        detail = await r.query().get_lead_detail(result.lead_id)

        assert result.answers_write.status == WriteStatus.persisted
        assert result.score_write.status == WriteStatus.skipped
        assert detail.score_source == ScoreSource.computed
        assert detail.score == result.score

    @pytest.mark.asyncio
    async def test_legacy_schema_stores_answers_and_aliased_score(
        self, legacy_session, repos, contact, strong_answers
    ):
        r = repos(legacy_session)

        result = await r.intake().submit_lead(contact, strong_answers)
        detail = await r.query().get_lead_detail(result.lead_id)

        assert result.degraded is False
        score_values = (
            await legacy_session.execute(text("SELECT DISTINCT score_value FROM lead_answers"))
        ).scalars().all()
        assert score_values == [0.0]
        row = (
            await legacy_session.execute(
                text("SELECT percent, rating FROM lead_scores WHERE lead_id = :id"),
                {"id": result.lead_id},
            )
        ).one()
        assert tuple(row) == (99, "low")
        assert detail.score_source == ScoreSource.persisted
        assert detail.score == result.score

    @pytest.mark.asyncio
    async def test_rejected_answer_row_is_a_partial_write(
        self, legacy_session, repos, contact, strong_answers
    ):
        r = repos(legacy_session)
        answers = dict(strong_answers, rejected_key="x")

        result = await r.intake().submit_lead(contact, answers)
        detail = await r.query().get_lead_detail(result.lead_id)

        assert result.answers_write.status == WriteStatus.partial
        assert result.answers_write.written == len(strong_answers)
        assert result.answers_write.failed == 1
        assert result.score_write.status == WriteStatus.persisted
        assert "rejected_key" not in detail.answers
        assert detail.lead.id == result.lead_id

    @pytest.mark.asyncio
    async def test_resubmitted_score_updates_the_existing_row(
        self, full_session, repos, contact, strong_answers, weak_answers
    ):
        r = repos(full_session)
        result = await r.intake().submit_lead(contact, strong_answers)

        write = await r.scores.upsert(result.lead_id, score(weak_answers))
        stored = await r.scores.get_for_leads([result.lead_id])

        assert write.status == WriteStatus.persisted
        assert stored[result.lead_id] == score(weak_answers)
        count = (await full_session.execute(text("SELECT COUNT(*) FROM lead_scores"))).scalar()
        assert count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "changes",
        [
            {"email": None},
            {"email": "not-an-email"},
            {"company_name": "   "},
            {"contact_name": None},
        ],
    )
    async def test_invalid_contact_data_stores_nothing(
        self, full_session, repos, contact, changes
    ):
        r = repos(full_session)
        attributes = {k: v for k, v in dict(contact, **changes).items() if v is not None}

        with pytest.raises(ValidationError):
            await r.intake().submit_lead(attributes, {"vpn_in_use": "yes"})

        assert await r.leads.list() == []

    @pytest.mark.asyncio
    async def test_list_shaped_answers(self, full_session, repos, contact):
        r = repos(full_session)
        answers = [
            {"question_key": "vpn_in_use", "answer_value": "yes"},
            {"key": "vpn_technology", "value": "wireguard"},
        ]

        result = await r.intake().submit_lead(contact, answers)
        detail = await r.query().get_lead_detail(result.lead_id)

        assert detail.answers == {"vpn_in_use": "yes", "vpn_technology": "wireguard"}
        assert result.score.score_vpn == 1.25

    @pytest.mark.asyncio
    async def test_submitted_lifecycle_fields_are_ignored(
        self, full_session, repos, contact
    ):
        r = repos(full_session)
        attrs = dict(contact, status="done", done_at="2020-01-01T00:00:00Z")

        result = await r.intake().submit_lead(attrs)
        detail = await r.query().get_lead_detail(result.lead_id)

        assert detail.lead.status == "new"
        assert detail.lead.completed_at is None

    @pytest.mark.asyncio
    async def test_no_answers_scores_zero(self, full_session, repos, contact):
        result = await repos(full_session).intake().submit_lead(contact)

        assert result.score == EMPTY_SCORE
        assert result.answers_write.status == WriteStatus.persisted
        assert result.answers_write.written == 0


class TestLocale:
    @pytest.mark.asyncio
    async def test_accept_language_header(self, full_session, repos, contact):
        r = repos(full_session)
        result = await r.intake().submit_lead(
            contact, accept_language="en-US,en;q=0.9"
        )
        lead = await r.leads.get_by_id(result.lead_id)
        assert lead.language == "en"

    @pytest.mark.asyncio
    async def test_explicit_language_wins_over_header(self, full_session, repos, contact):
        r = repos(full_session)
        result = await r.intake().submit_lead(
            dict(contact, language="fr"), accept_language="en-US"
        )
        lead = await r.leads.get_by_id(result.lead_id)
        assert lead.language == "fr"

    @pytest.mark.asyncio
    async def test_unsupported_locale_uses_default(self, full_session, repos, contact):
        r = repos(full_session)
        result = await r.intake().submit_lead(contact, accept_language="ja-JP")
        lead = await r.leads.get_by_id(result.lead_id)
        assert lead.language == "de"


class TestAnswerMapping:
    def test_mapping_is_copied(self):
        answers = {"a": "1"}
        assert as_answer_mapping(answers) == answers
        assert as_answer_mapping(answers) is not answers

    def test_none_is_empty(self):
        assert as_answer_mapping(None) == {}

    @pytest.mark.parametrize("bad", ["yes", 12, [1, 2], [{"answer_value": "x"}]])
    def test_rejects_other_shapes(self, bad):
        with pytest.raises(ValidationError):
            as_answer_mapping(bad)
