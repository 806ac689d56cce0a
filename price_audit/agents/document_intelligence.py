"""
Document Intelligence Agent
Sends an uploaded procurement document to the LLM and returns the raw
structured record. The record is untrusted: validation happens in the
ingestion coordinator, not here.
"""

import base64
import json
import re
from typing import Optional, Union

from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from price_audit.config import get_config
from price_audit.errors import ExtractionFailure
from price_audit.utils.logging import setup_logging, log_audit_event


logger = setup_logging(__name__)
config = get_config()


EXTRACTION_PROMPT = """Audit this procurement document. Extract exactly into the JSON format below.
Rules:
1. Supplier Name: Extract the official business name.
2. Line Items: Extract name, quantity, unit price, and subtotal for every row in the table.
3. Totals: Capture GST (tax) and the final Grand Total.
4. Metadata: Invoice number, date (YYYY-MM-DD), and due date (YYYY-MM-DD).
5. If a field is missing, use null for strings and 0 for numbers.
6. docType must be one of: invoice, credit_note, debit_note, quote.

Return ONLY valid JSON in this format:
{"docType": "invoice", "supplierName": "Acme Pty Ltd", "date": "2024-01-31", "dueDate": "2024-02-29", "invoiceNumber": "INV-123", "totalAmount": 110.0, "gstAmount": 10.0, "bankAccount": null, "creditTerm": null, "address": null, "abn": null, "tel": null, "email": null, "items": [{"name": "Widget", "quantity": 10, "unitPrice": 10.0, "total": 100.0}]}"""


MOCK_EXTRACTION = {
    "docType": "invoice",
    "supplierName": "Mock Supplier Pty Ltd",
    "date": "2026-01-31",
    "dueDate": "2026-02-28",
    "invoiceNumber": "INV-MOCK-001",
    "totalAmount": 1100.0,
    "gstAmount": 100.0,
    "bankAccount": None,
    "creditTerm": "30 days",
    "address": None,
    "abn": None,
    "tel": None,
    "email": None,
    "items": [
        {"name": "Mock Product A", "quantity": 100, "unitPrice": 8.0, "total": 800.0},
        {"name": "Mock Product B", "quantity": 50, "unitPrice": 4.0, "total": 200.0},
    ],
}


def get_llm(model_name: str = None):
    """Get LLM instance based on provider."""
    model = model_name or config.LLM_MODEL

    if config.LLM_PROVIDER == "gemini":
        return ChatGoogleGenerativeAI(
            model=model,
            google_api_key=config.GOOGLE_API_KEY,
            temperature=config.LLM_TEMPERATURE,
            max_output_tokens=config.LLM_MAX_TOKENS,
        )
    return ChatOpenAI(
        model=model,
        api_key=config.LLM_API_KEY,
        base_url=config.LLM_API_BASE,
        temperature=config.LLM_TEMPERATURE,
        max_tokens=config.LLM_MAX_TOKENS,
    )


def build_message(document_b64: str, mime_type: str) -> HumanMessage:
    """Multimodal message: the document inline plus the extraction prompt."""
    if config.LLM_PROVIDER == "gemini":
        document_part = {"type": "media", "mime_type": mime_type, "data": document_b64}
    else:
        document_part = {
            "type": "image_url",
            "image_url": {"url": f"data:{mime_type};base64,{document_b64}"},
        }
    return HumanMessage(content=[document_part, {"type": "text", "text": EXTRACTION_PROMPT}])


def get_llm_response_text(response) -> str:
    """Pull the text out of a chat model response."""
    content = getattr(response, "content", response)

    if isinstance(content, str):
        return content

    # Some providers return a list of content blocks
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)

    raise ValueError(f"Could not extract text content from LLM response of type {type(response)}")


def parse_extracted_json(json_str: str) -> dict:
    """
    Parse JSON response from LLM, with robust error handling.
    """
    if not json_str or not json_str.strip():
        raise ValueError("Empty response from LLM")

    json_str = json_str.strip()

    # Try direct parsing first
    try:
        result = json.loads(json_str)
        if isinstance(result, dict) and result:
            return result
    except json.JSONDecodeError:
        pass

    # Try to extract JSON if it's wrapped in markdown code blocks
    match = re.search(r'```(?:json)?\s*(.*?)\s*```', json_str, re.DOTALL)
    if match:
        try:
            result = json.loads(match.group(1))
            if isinstance(result, dict) and result:
                return result
        except json.JSONDecodeError:
            pass

    # Last resort: outermost braces
    start = json_str.find('{')
    end = json_str.rfind('}')
    if start >= 0 and end > start:
        try:
            result = json.loads(json_str[start:end + 1])
            if isinstance(result, dict) and result:
                return result
        except json.JSONDecodeError:
            pass

    response_preview = json_str[:300] if len(json_str) > 300 else json_str
    raise ValueError(f"Could not parse JSON from LLM response:\n{response_preview}")


async def extract_invoice_data(
    content: Union[bytes, str],
    mime_type: Optional[str] = None,
    file_name: str = "",
) -> dict:
    """
    Extract a raw invoice record from a document.

    Args:
        content: Raw document bytes, or an already base64-encoded string
        mime_type: Document MIME type; application/pdf when unknown
        file_name: Used for logging only

    Returns:
        The parsed (unvalidated) extraction record

    Raises:
        ExtractionFailure: the model call failed or returned unusable output
    """
    mime_type = mime_type or config.DEFAULT_MIME_TYPE

    if config.LLM_MOCK_MODE:
        logger.info("Mock mode enabled - returning sample extraction")
        return json.loads(json.dumps(MOCK_EXTRACTION))

    if isinstance(content, bytes):
        document_b64 = base64.b64encode(content).decode("ascii")
    else:
        document_b64 = content

    try:
        llm = get_llm()
        response = await llm.ainvoke([build_message(document_b64, mime_type)])
        response_text = get_llm_response_text(response).strip()
    except Exception as e:
        logger.error(f"Extraction call failed for {file_name or 'document'}: {e}")
        if "403" in str(e):
            raise ExtractionFailure(
                "Access denied: check that the API key is active and has permissions"
            ) from e
        raise ExtractionFailure(f"Extraction failed: {e}") from e

    if not response_text:
        raise ExtractionFailure("The model returned no readable data for this document")

    try:
        extracted = parse_extracted_json(response_text)
    except ValueError as e:
        logger.error(f"Failed to parse extraction response: {e}")
        raise ExtractionFailure(f"Failed to parse extraction response: {e}") from e

    log_audit_event(logger, "DocumentIntelligenceAgent", "Document extracted", {
        "file_name": file_name,
        "mime_type": mime_type,
        "supplier": extracted.get("supplierName"),
        "invoice_number": extracted.get("invoiceNumber"),
    })
    return extracted
