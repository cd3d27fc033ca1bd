"""
Tests for the chat assistant: intent routing, the price summary and
context building for the language model.
"""

import uuid
from decimal import Decimal

import pytest
from openai import OpenAIError

from app.config import settings
from app.models.property import RentProperty, SaleProperty
from app.services.chat import (
    AGENCY_ANSWER_PROMPT,
    CLASSIFIER_PROMPT,
    NO_PRICE_MATCH_REPLY,
    PROPERTY_ASSISTANT_PROMPT,
    PROPERTY_PRESENTER_PROMPT,
    SUBMIT_REPLY,
    UNKNOWN_INTENT_REPLY,
    ChatService,
    contact_reply,
    price_range_reply
)
from app.utils.exceptions import BadRequestError, ServiceUnavailableError
from tests.conftest import FakeLLMClient


def listing(model, price, city="Cairo", property_type="شقة", address=None):
    return model(
        id=uuid.uuid4(),
        title="Listing",
        price=Decimal(str(price)),
        city=city,
        address=address,
        property_type=property_type,
    )


class TestPriceRangeReply:
    """Price summary computed without the language model."""

    def test_rent_summary_for_type_and_city(self):
        properties = [
            listing(RentProperty, 4000),
            listing(RentProperty, 5000),
            listing(RentProperty, 6001),
            listing(SaleProperty, 900000),
            listing(RentProperty, 3000, city="Giza"),
            listing(RentProperty, 2000, property_type="فيلا"),
        ]

        reply = price_range_reply("كم سعر شقة للإيجار في Cairo؟", properties)

        assert reply == (
            '📊 متوسط الأسعار للإيجار لنوع العقار "شقة" في المنطقة المطلوبة يتراوح بين '
            "4000 جنيه و 6001 جنيه. والمتوسط التقريبي هو 5000 جنيه."
        )

    def test_sale_summary_without_type(self):
        properties = [listing(SaleProperty, 1000000), listing(SaleProperty, 2000000, property_type="فيلا")]

        reply = price_range_reply("prices for sale in cairo", properties)

        assert "للبيع" in reply
        assert "لنوع العقار" not in reply
        assert "1000000 جنيه و 2000000 جنيه" in reply
        assert "1500000" in reply

    def test_average_rounds_half_up(self):
        properties = [listing(RentProperty, 1000), listing(RentProperty, 1001)]

        reply = price_range_reply("rent in cairo", properties)

        assert "والمتوسط التقريبي هو 1001 جنيه" in reply

    def test_address_mention_matches(self):
        properties = [listing(RentProperty, 7000, city="Cairo", address="Maadi")]

        reply = price_range_reply("rent near maadi", properties)

        assert "7000" in reply

    def test_location_must_be_mentioned(self):
        reply = price_range_reply("rent prices", [listing(RentProperty, 4000)])

        assert reply == NO_PRICE_MATCH_REPLY

    def test_rent_and_sale_together_match_nothing(self):
        properties = [listing(RentProperty, 4000), listing(SaleProperty, 900000)]

        assert price_range_reply("rent or sale in cairo", properties) == NO_PRICE_MATCH_REPLY

    def test_no_listings(self):
        assert price_range_reply("rent in cairo", []) == NO_PRICE_MATCH_REPLY


class TestSmartAsk:
    """Intent routing."""

    @pytest.mark.asyncio
    async def test_submit_intent(self, db_session):
        client = FakeLLMClient(["submit"])
        answer = await ChatService(db_session, client).smart_ask("How do I list my flat?")

        assert answer == SUBMIT_REPLY
        assert len(client.calls) == 1
        assert client.calls[0]["messages"][0] == {"role": "system", "content": CLASSIFIER_PROMPT}
        assert client.calls[0]["model"] == settings.openai_model

    @pytest.mark.asyncio
    async def test_label_is_normalized(self, db_session):
        answer = await ChatService(db_session, FakeLLMClient(["  Contact\n"])).smart_ask("phone?")

        assert answer == contact_reply()
        assert settings.support_phone in answer
        assert settings.support_email in answer

    @pytest.mark.asyncio
    async def test_price_range_intent_reads_public_listings(self, db_session, public_property, pending_property):
        client = FakeLLMClient(["price-range"])

        answer = await ChatService(db_session, client).smart_ask("متوسط سعر شقة للإيجار في Cairo")

        assert "5000 جنيه و 5000 جنيه" in answer
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_property_intent_sends_context(self, db_session, public_property):
        client = FakeLLMClient(["property", "Here are the flats"])

        answer = await ChatService(db_session, client).smart_ask("Any flats in Cairo?")

        assert answer == "Here are the flats"
        messages = client.calls[1]["messages"]
        assert messages[0]["content"] == PROPERTY_PRESENTER_PROMPT
        assert "Maadi flat" in messages[1]["content"]
        assert "عقار رقم 1" in messages[1]["content"]
        assert "Any flats in Cairo?" in messages[1]["content"]

    @pytest.mark.asyncio
    async def test_agency_intent_sends_context(self, db_session, agencies):
        client = FakeLLMClient(["agency", "Nile Homes is featured"])

        answer = await ChatService(db_session, client).smart_ask("Which agency is best?")

        assert answer == "Nile Homes is featured"
        messages = client.calls[1]["messages"]
        assert messages[0]["content"] == AGENCY_ANSWER_PROMPT
        assert "Agency: Nile Homes" in messages[1]["content"]
        assert "Agency: Delta Estates" in messages[1]["content"]

    @pytest.mark.asyncio
    async def test_unknown_intent(self, db_session):
        answer = await ChatService(db_session, FakeLLMClient(["weather"])).smart_ask("Is it sunny?")

        assert answer == UNKNOWN_INTENT_REPLY

    @pytest.mark.asyncio
    async def test_empty_question(self, db_session):
        client = FakeLLMClient(["submit"])

        with pytest.raises(BadRequestError):
            await ChatService(db_session, client).smart_ask("   ")

        assert client.calls == []

    @pytest.mark.asyncio
    async def test_provider_failure(self, db_session):
        client = FakeLLMClient(error=OpenAIError("connection reset"))

        with pytest.raises(ServiceUnavailableError):
            await ChatService(db_session, client).smart_ask("Any flats?")


class TestDirectQuestions:
    """Questions answered without classification."""

    @pytest.mark.asyncio
    async def test_ask_properties(self, db_session, public_property):
        client = FakeLLMClient(["Two flats"])

        answer = await ChatService(db_session, client, model="gpt-test").ask_properties("What is available?")

        assert answer == "Two flats"
        assert len(client.calls) == 1
        assert client.calls[0]["model"] == "gpt-test"
        messages = client.calls[0]["messages"]
        assert messages[0]["content"] == PROPERTY_ASSISTANT_PROMPT
        assert "Price: 5000" in messages[1]["content"]

    @pytest.mark.asyncio
    async def test_ask_agencies(self, db_session, agencies):
        client = FakeLLMClient(["Nile Homes"])

        await ChatService(db_session, client).ask_agencies("Featured agencies?")

        context = client.calls[0]["messages"][1]["content"]
        assert "Agency Name: Nile Homes\nFeatured: Yes" in context
        assert "Description: No description" in context

    @pytest.mark.asyncio
    async def test_direct_question_required(self, db_session):
        with pytest.raises(BadRequestError):
            await ChatService(db_session, FakeLLMClient()).ask_agencies("")
