"""
AI Agents for Drawer

DESIGN DECISION: Both model calls go through small agent classes that own
their prompt and their Gemini model. The rest of the system only sees
plain text in and plain text (or a normalized record) out.

CRITICAL BOUNDARIES:

1. DOCUMENT EXTRACTION AGENT:
   - CAN: Read the attached file and transcribe it into one JSON object
   - CANNOT: Decide what gets stored - its output is always normalized
     and every field is coerced before anything is persisted
   - CANNOT: Compute insights (those are deterministic, see insights/)

2. CHAT AGENT:
   - CAN: Answer questions FROM the stored-data context it is given
   - CAN: Ask for a note to be created by returning a create_note object
   - CANNOT: Write anything itself - the router decides what happens
     with its reply

Every failure of the SDK (network, quota, blocked prompt, empty
candidate) surfaces as UpstreamModelError. There are no retries here;
a failed model call ends the current operation.
"""

import datetime as dt
from typing import Any, Optional

import google.generativeai as genai

from drawer.audit import get_logger
from drawer.config import GeminiSettings, get_settings
from drawer.extraction.normalizer import normalize_with_report
from drawer.models.document import ExtractedDocument

log = get_logger(__name__)


class UpstreamModelError(Exception):
    """The language model call failed or returned nothing usable."""
    pass


EXTRACTION_PROMPT = """You are a document data extraction expert. Analyze this document and extract ALL information.

Return ONLY valid JSON with no additional text or markdown.

The JSON must have these fields:
- "merchant": string (the business, company, employer, organization, or issuer name. For W-2s use the employer name. For tax forms use the issuing agency. NEVER leave this empty.)
- "amount": number (primary monetary value. For receipts/bills use the total. For pay stubs use net pay. For W-2s/1099s/informational docs use 0. For non-financial docs use 0.)
- "category": string - MUST be exactly one of: "Finance", "Health", "Personal", "Home", "Identity/Legal", "Career/School"
  - Finance: Pay stubs, tax papers (1040, 1099, W-2), receipts, bills, bank statements
  - Health: Lab results, appointments, prescriptions, insurance docs, medical records
  - Personal: Notes, journal entries, personal letters, photos
  - Home: Rent/mortgage contracts, car insurance, maintenance records, home repairs
  - Identity/Legal: IDs, licenses, birth certificates, passports, legal contracts
  - Career/School: Certifications, resume, work notes, diplomas, transcripts
- "transaction_type": string - MUST be exactly one of: "expense", "income", "record"
  - "expense": Bills, receipts (supermarket, Netflix, utilities, rent, any purchase or payment OUT)
  - "income": Pay stubs, deposits, refunds (money coming IN)
  - "record": Informational documents (W-2, 1099, contracts, IDs, medical results, certificates). Use amount 0 for records to avoid double-counting.
- "date": string (date in YYYY-MM-DD format. For W-2s use tax year end. Use today if unclear.)
- "due_date": string or null (due date for bills in YYYY-MM-DD, null otherwise)
- "summary": string (brief 1-2 sentence summary)
- "raw_text": string (COMPLETE transcription of ALL visible text. Include names, addresses, phone numbers, account numbers, dates, amounts, line items, etc.)

IMPORTANT: W-2s and 1099s are RECORDS, not income. Their amounts should be 0 to avoid double-counting with actual pay stubs.

Example for a W-2:
{"merchant":"Acme Corp","amount":0,"category":"Finance","transaction_type":"record","date":"2024-12-31","due_date":null,"summary":"W-2 from Acme Corp for tax year 2024, total wages $65,000.","raw_text":"Form W-2..."}

Example for a grocery receipt:
{"merchant":"Walmart","amount":47.53,"category":"Finance","transaction_type":"expense","date":"2025-01-15","due_date":null,"summary":"Groceries at Walmart including produce and dairy.","raw_text":"WALMART SUPERCENTER..."}

Example for a pay stub:
{"merchant":"Acme Corp","amount":2500.00,"category":"Finance","transaction_type":"income","date":"2025-01-31","due_date":null,"summary":"Bi-weekly pay stub from Acme Corp, net pay $2,500.","raw_text":"PAY STUB..."}"""


CHAT_INSTRUCTIONS = """
=== INSTRUCTIONS ===
The user may:
1. Upload a document - you will receive the file inline. Process it and report what you extracted.
2. Ask questions about their stored documents - answer precisely using the document data above. Include specific details like addresses, names, amounts, dates, etc.
3. Request analytics - compute totals, comparisons, trends from the stored data. Remember: only expenses subtract, only income adds. Records (W-2s, 1099s, etc.) are informational only.
4. Create a note or reminder - if the user wants to save a note or set a reminder, respond with JSON:
   {"action":"create_note","content":"...note text...","reminder_date":"YYYY-MM-DD or null","reminder_time":"HH:MM or null"}
   Return ONLY the JSON when creating notes. Do not wrap it in markdown.

5. Request to download or view the original document - if the user asks to download, view, or get the original file for a document, include the download link in your response using this exact markdown format: [Download Original Document](FILE_URL) where FILE_URL is the Download URL from the document data above. Always include the download link when the user asks for the original file, receipt, document, or PDF.

For questions, answer naturally and precisely. If information exists in the document data, provide the exact details.
If information is not in any stored document, say so clearly.
"""


def build_chat_prompt(context: str, user_message: str) -> str:
    """Full chat prompt: stored-data context, instructions, then the user turn."""
    return f"{context}{CHAT_INSTRUCTIONS}\nUser: {user_message}"


def _response_text(response: Any) -> str:
    """
    Text of a Gemini response.

    The SDK raises ValueError from .text when the candidate was blocked
    or has no parts; that is an upstream failure, not an empty answer.
    """
    try:
        text = response.text
    except ValueError as e:
        raise UpstreamModelError(f"Model returned no usable content: {e}") from e
    return (text or "").strip()


class _GeminiAgent:
    """Shared Gemini setup. A model can be injected for tests."""

    max_tokens_setting = "chat_max_tokens"

    def __init__(
        self,
        model: Optional[Any] = None,
        settings: Optional[GeminiSettings] = None,
    ):
        if model is not None:
            self._model = model
        else:
            self._settings = settings or get_settings().gemini
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": getattr(self._settings, self.max_tokens_setting),
            }
        )

    async def _generate(self, contents: Any, operation: str) -> str:
        try:
            response = await self._model.generate_content_async(contents)
        except Exception as e:
            log.error("model_call_failed", operation=operation, error=str(e))
            raise UpstreamModelError(f"{operation} failed: {e}") from e
        return _response_text(response)


class DocumentExtractionAgent(_GeminiAgent):
    """
    Reads an uploaded file and returns a normalized record.

    Flow:
    1. Send the extraction prompt plus the file inline
    2. Locate the JSON object in the reply
    3. Coerce every field (see ExtractedDocument)
    """

    max_tokens_setting = "extraction_max_tokens"

    async def extract_with_report(
        self,
        file_bytes: bytes,
        mime_type: str,
        today: Optional[dt.date] = None,
    ) -> tuple[ExtractedDocument, list[str]]:
        """
        Extract and normalize, also returning the defaulted field names.

        Raises:
            UpstreamModelError: The model call failed
            ExtractionFormatError: No JSON object in the reply
            ExtractionParseError: Malformed JSON in the reply
        """
        text = await self._generate(
            [EXTRACTION_PROMPT, {"mime_type": mime_type, "data": file_bytes}],
            operation="document_extraction",
        )
        return normalize_with_report(text, today)

    async def extract(
        self,
        file_bytes: bytes,
        mime_type: str,
        today: Optional[dt.date] = None,
    ) -> ExtractedDocument:
        """Extract and normalize one document."""
        extracted, _ = await self.extract_with_report(file_bytes, mime_type, today)
        return extracted


class ChatAgent(_GeminiAgent):
    """
    Answers the user from the stored-data context.

    The reply is returned raw; interpreting it (plain answer or
    create_note action) is the router's job.
    """

    async def respond(self, context: str, user_message: str) -> str:
        """
        Ask the model.

        Returns:
            The model's reply, possibly empty

        Raises:
            UpstreamModelError: The model call failed
        """
        return await self._generate(
            build_chat_prompt(context, user_message),
            operation="chat",
        )
