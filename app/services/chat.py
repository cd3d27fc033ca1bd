"""
Chat assistant answering questions from listing and agency data.

``smart_ask`` first asks the model to classify the question, then either
returns a canned reply, computes a price summary from the database, or sends
the relevant records back to the model as context for the final answer.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence
from openai import AsyncOpenAI, OpenAIError
from sqlalchemy.ext.asyncio import AsyncSession
from app.config import settings
from app.models.agency import Agency
from app.models.property import Property, PropertyCategory
from app.repositories.agency import AgencyRepository
from app.repositories.property import PropertyRepository
from app.utils.exceptions import BadRequestError, ServiceUnavailableError
import logging

logger = logging.getLogger(__name__)

CLASSIFIER_PROMPT = """You are a classifier. Classify the user's question into one of the following categories:
- property
- agency
- submit
- contact
- price-range

Only return one word from the above."""

PROPERTY_PRESENTER_PROMPT = (
    "أنت مساعد ذكي متخصص في عرض العقارات. عندما تُعرض عليك بيانات عقارات، "
    "قدمها بشكل منسق وواضح باستخدام عناوين فرعية وفواصل واضحة بين كل عقار."
)
AGENCY_ANSWER_PROMPT = "You are a helpful assistant that answers based on website data."
PROPERTY_ASSISTANT_PROMPT = "You are a helpful assistant who answers questions about available properties on the website."
AGENCY_ASSISTANT_PROMPT = "You are a helpful assistant that answers questions about real estate agencies listed on the website."

SUBMIT_REPLY = (
    'لرفع العقار الخاص بك على موقع سكنلي , يمكنك التوجه الى نموذج ملئ بييانات العقار '
    'عن طريق الضغط على زر "أضف عقارك" باللون الازرق او اضغط على الرابط ...... '
    'للتوجه الى نموذج ملئ البيانات مباشرة , مع العلم انه سيتوجب عليك الانتظار لبضع ساعات '
    'حيث سيتم مراجعة كافة تفاصيل العقار من قبل أدمن موقع سكنلي قبل نشره , و عندها تستطيع '
    'متابعة حالة بيع عقارك و مشاهداته عن طريق صفحتك الشخصية على موقع سكنلي ... '
    'برجاء انشاء حساب و التاكد من تسجيل الدخول قبل البدء في عملية رفع عقارك على موقع سكنلي'
)
NO_PRICE_MATCH_REPLY = "❌ لم أتمكن من العثور على عقارات تطابق سؤالك. حاول بصيغة أوضح أو مدينة/عنوان معروف."
UNKNOWN_INTENT_REPLY = "❌ لا أستطيع تحديد مصدر المعلومات المطلوب للإجابة على سؤالك."

RENT_KEYWORDS = ("إيجار", "rent")
SALE_KEYWORDS = ("بيع", "sale")
KNOWN_TYPES = ("شقة", "فيلا", "محل", "استوديو", "دوبلكس")


def contact_reply() -> str:
    return (
        "نحن في خدمتك. للتواصل معنا : يمكنك الإتصال على "
        f"{settings.support_phone} , او إرسال بريد إلكتروني الى {settings.support_email}"
    )


def _format_amount(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(int(value))
    return str(value.normalize())


def price_range_reply(question: str, properties: Sequence[Property]) -> str:
    """
    Summarize prices of the listings the question points at.

    The question narrows by rent or sale keywords, by a known property type,
    and must mention each matching listing's city or address.
    """
    text = question.lower()

    is_rent = any(keyword in text for keyword in RENT_KEYWORDS)
    is_sale = any(keyword in text for keyword in SALE_KEYWORDS)
    selected_type = next((known for known in KNOWN_TYPES if known in text), None)

    prices: List[Decimal] = []
    for property_obj in properties:
        category = (property_obj.category or "").lower()
        if is_rent and category != PropertyCategory.RENT.value:
            continue
        if is_sale and category != PropertyCategory.SALE.value:
            continue
        if selected_type and (property_obj.property_type or "").lower() != selected_type:
            continue

        city = (property_obj.city or "").lower()
        address = (property_obj.address or "").lower()
        if not ((city and city in text) or (address and address in text)):
            continue

        prices.append(Decimal(property_obj.price))

    if not prices:
        return NO_PRICE_MATCH_REPLY

    low = min(prices)
    high = max(prices)
    average = (sum(prices) / len(prices)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)

    purpose = "للإيجار" if is_rent else "للبيع" if is_sale else ""
    type_part = f' لنوع العقار "{selected_type}"' if selected_type else ""

    return (
        f"📊 متوسط الأسعار {purpose}{type_part} في المنطقة المطلوبة يتراوح بين "
        f"{_format_amount(low)} جنيه و {_format_amount(high)} جنيه. "
        f"والمتوسط التقريبي هو {_format_amount(average)} جنيه."
    )


def property_context(properties: Sequence[Property]) -> str:
    """Numbered Arabic blocks describing each listing."""
    blocks = []
    for index, property_obj in enumerate(properties, start=1):
        blocks.append(
            f"### 🏠 عقار رقم {index}\n"
            f"- النوع: {property_obj.property_type}\n"
            f"- العنوان: {property_obj.title}\n"
            f"- المدينة: {property_obj.city}\n"
            f"- العنوان التفصيلي: {property_obj.address}\n"
            f"- السعر: {_format_amount(Decimal(property_obj.price))} جنيه\n"
            f"- الوصف: {property_obj.description or 'لا يوجد وصف'}\n"
        )
    return "\n---\n".join(blocks)


def agency_context(agencies: Sequence[Agency]) -> str:
    return "\n\n".join(
        f"Agency: {agency.name}\nDescription: {agency.description}" for agency in agencies
    )


def property_details_context(properties: Sequence[Property]) -> str:
    return "\n\n".join(
        f"Type: {p.property_type}\nTitle: {p.title}\nCity: {p.city}\n"
        f"Address: {p.address}\nPrice: {_format_amount(Decimal(p.price))}\nDescription: {p.description}"
        for p in properties
    )


def agency_details_context(agencies: Sequence[Agency]) -> str:
    return "\n\n".join(
        f"Agency Name: {a.name}\nFeatured: {'Yes' if a.is_featured else 'No'}\n"
        f"Description: {a.description or 'No description'}\nLogo URL: {a.logo_url or 'N/A'}"
        for a in agencies
    )


class ChatService:
    """
    Retrieval-augmented assistant over the listings database.

    Args:
        db_session: Database session used to read listings and agencies
        llm_client: OpenAI-compatible async client
        model: Chat model name, defaults to the configured one
    """

    def __init__(self, db_session: AsyncSession, llm_client: AsyncOpenAI, model: Optional[str] = None):
        self.db = db_session
        self.llm_client = llm_client
        self.model = model or settings.openai_model
        self.property_repo = PropertyRepository(db_session)
        self.agency_repo = AgencyRepository(db_session)

    async def _complete(self, messages: List[Dict[str, Any]]) -> str:
        try:
            response = await self.llm_client.chat.completions.create(
                model=self.model,
                messages=messages
            )
        except OpenAIError as e:
            logger.error(f"Language model request failed: {e}")
            raise ServiceUnavailableError("The assistant is temporarily unavailable")

        return response.choices[0].message.content or ""

    @staticmethod
    def _require_question(question: str) -> str:
        if not question or not question.strip():
            raise BadRequestError("Question is required")
        return question

    async def classify(self, question: str) -> str:
        """Intent label for a question, trimmed and lowercased."""
        label = await self._complete([
            {"role": "system", "content": CLASSIFIER_PROMPT},
            {"role": "user", "content": question},
        ])
        return label.strip().lower()

    async def smart_ask(self, question: str) -> str:
        """
        Answer any question by routing on its classified intent.

        Raises:
            BadRequestError: If the question is empty
            ServiceUnavailableError: If the language model cannot be reached
        """
        question = self._require_question(question)
        intent = await self.classify(question)
        logger.info(f"Chat question classified as '{intent}'")

        if intent == "submit":
            return SUBMIT_REPLY

        if intent == "contact":
            return contact_reply()

        if intent == "price-range":
            properties = await self.property_repo.get_public()
            return price_range_reply(question, properties)

        if intent == "property":
            properties = await self.property_repo.get_public()
            return await self._complete([
                {"role": "system", "content": PROPERTY_PRESENTER_PROMPT},
                {"role": "user", "content": f"السياق:\n{property_context(properties)}\n\nسؤال المستخدم: {question}"},
            ])

        if intent == "agency":
            agencies = await self.agency_repo.get_all()
            return await self._complete([
                {"role": "system", "content": AGENCY_ANSWER_PROMPT},
                {"role": "user", "content": f"Context:\n{agency_context(agencies)}\n\nUser Question: {question}"},
            ])

        return UNKNOWN_INTENT_REPLY

    async def ask_properties(self, question: str) -> str:
        """Answer from public listings without classifying first."""
        question = self._require_question(question)
        properties = await self.property_repo.get_public()
        return await self._complete([
            {"role": "system", "content": PROPERTY_ASSISTANT_PROMPT},
            {"role": "user", "content": f"Context:\n{property_details_context(properties)}\n\nUser Question: {question}"},
        ])

    async def ask_agencies(self, question: str) -> str:
        """Answer from agency records without classifying first."""
        question = self._require_question(question)
        agencies = await self.agency_repo.get_all()
        return await self._complete([
            {"role": "system", "content": AGENCY_ASSISTANT_PROMPT},
            {"role": "user", "content": f"Context:\n{agency_details_context(agencies)}\n\nUser Question: {question}"},
        ])
