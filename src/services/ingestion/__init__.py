"""Document ingestion pipeline for the knowledge base.

Pipeline stages overview:

1. **Extract** (source_processors/) -- Format-specific readers turn
   transcripts, PDFs, Markdown, images, emails, web pages and EPUBs into
   cleaned plain text, with page/section breakpoints where available.

2. **Chunk** (chunker.py / TextChunker) -- Packs sentences greedily into
   bounded chunks (500 chars for transcripts, 600 otherwise).

3. **Attribute** (page_attribution.py) -- Maps each chunk of a paginated
   document back to its page or section.

4. **Embed** (via IEmbeddingProvider) -- Document-mode embedding per chunk.

5. **Track** (processing_ledger.py / ProcessingLedger) -- Remembers which
   files were processed and how each attempt went.

The IngestionService orchestrates all stages; storing the resulting
chunks goes through src/services/retrieval_service.py.
"""

from src.services.ingestion.chunker import TextChunker, segment_sentences
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.page_attribution import PageAttributor, attribute_page
from src.services.ingestion.processing_ledger import ProcessingLedger

__all__ = [
    "IngestionService",
    "PageAttributor",
    "ProcessingLedger",
    "TextChunker",
    "attribute_page",
    "segment_sentences",
]
