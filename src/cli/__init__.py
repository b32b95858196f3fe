# =============================================================================
# src/cli/__init__.py -- command-line tools
# =============================================================================
#
#   ingest.py -- process / status / forget / search / ask
#   chat.py   -- interactive question loop
#
# Both build their services through src.main.build_components so they use
# the same collection, embedding model and ledger as the API server.
# Heavy imports are deferred until a command actually runs.
# =============================================================================

"""CLI tools for the knowledge assistant.

- ``python -m src.cli.ingest`` -- build and query the knowledge base
- ``python -m src.cli.chat`` -- interactive question loop
"""
