"""Ingestion layer.

This package turns the raw gateway byte stream into typed records:
stream reassembly, checksum validation, and per-sentence decoding.
"""

from nmeabridge.ingestion.assembler import StreamAssembler
from nmeabridge.ingestion.decoder import decode, sentence_type, verify_checksum

__all__ = ["StreamAssembler", "decode", "sentence_type", "verify_checksum"]
