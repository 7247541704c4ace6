"""
Document decoding: PDF bytes or parse-endpoint payloads to a DecodedPage.
"""

from .page_decoder import PDFPageDecoder, open_pdf
from .payload_reader import PayloadPageReader, runs_to_payload

__all__ = [
    "PDFPageDecoder",
    "PayloadPageReader",
    "open_pdf",
    "runs_to_payload",
]
