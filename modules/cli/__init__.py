"""
Admin Client Module.

Typer/Rich command-line client for board administrators.

Architecture:
- The backend owns persistence and validation
- The client owns its session view: snapshot, display sequence and
  reorder coordination run locally through modules.backend.listing
- Calls the backend over HTTP (httpx) with X-Frontend-ID: cli

Usage:
    python board.py --help
    python board.py opportunities list
    python board.py opportunities move 3 0
"""
