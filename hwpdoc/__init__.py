"""
HWP Document Tools
==================
Document-processing tools for HWP / HWPX word-processor files, exposed
over a request/response protocol (JSON-RPC over stdio, or HTTP).

Architecture:
    - Readers: Turn HWP (OLE) and HWPX (zip + XML) bytes into a Document
    - Block Reconstructor: Rebuilds paragraphs, tables and images in order
    - Image Materializer: Emits image payloads under a byte budget
    - Result Assembler: Success / failure envelopes with a shared taxonomy
    - Tool Engine: Tool registry and dispatch for every transport

Version: 1.0.0
"""

__version__ = "1.0.0"
