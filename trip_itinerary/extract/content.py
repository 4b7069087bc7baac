"""Turn uploaded documents (HTML, e-mail, PDF) into plain text for the LLM."""

import email
import hashlib
import io
import logging
from email.header import decode_header
from email.message import Message
from typing import Union

import pdfplumber
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


def decode_str(s: str) -> str:
    if not s:
        return ""
    chunks = []
    for chunk, charset in decode_header(s):
        if not isinstance(chunk, bytes):
            chunks.append(chunk)
            continue
        try:
            chunks.append(chunk.decode(charset or "utf-8", errors="ignore"))
        except LookupError:
            chunks.append(chunk.decode("utf-8", errors="ignore"))
    return "".join(chunks)


def html_to_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for s in soup(["script", "style"]):
        s.decompose()
    return soup.get_text(separator=" ", strip=True)


def email_to_text(msg: Message) -> str:
    """Subject, sender, date and body of an e-mail as one text block."""
    # Booking mails often ship both; plain text wins, HTML is the fallback
    bodies = {"text/plain": [], "text/html": []}
    for part in msg.walk():
        content_type = part.get_content_type()
        if content_type not in bodies:
            continue
        payload = part.get_payload(decode=True)
        if payload:
            charset = part.get_content_charset() or "utf-8"
            try:
                bodies[content_type].append(payload.decode(charset, errors="ignore"))
            except LookupError:
                bodies[content_type].append(payload.decode("utf-8", errors="ignore"))

    body = "".join(bodies["text/plain"])
    if not body and bodies["text/html"]:
        body = html_to_text("".join(bodies["text/html"]))

    return (
        f"Subject: {decode_str(msg.get('subject', ''))}\n"
        f"From: {decode_str(msg.get('from', ''))}\n"
        f"Date: {msg.get('date', '')}\n"
        f"---\n{body}"
    )


def eml_bytes_to_text(data: bytes) -> str:
    return email_to_text(email.message_from_bytes(data))


def pdf_to_text(data: bytes) -> str:
    """Text of every page, joined by newlines. Empty for scanned PDFs."""
    pages = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            page_text = page.extract_text()
            if page_text:
                pages.append(page_text)
    text = "\n".join(pages).strip()
    logger.debug("Extracted %d characters from %d PDF pages", len(text), len(pages))
    return text


def content_hash(content: Union[str, bytes]) -> str:
    """Stable key for a document, used by the extraction cache."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()
