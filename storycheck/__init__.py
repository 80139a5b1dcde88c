"""storycheck: end-to-end checks for the Story CRUD API.

Creates, edits, lists and deletes a story against a live API using a bearer
token, then exercises the error paths (missing fields, unknown ids). Steps run
in a fixed order and share the created story id through a per-run context.

Usage:
    python -m storycheck steps                       # Show the ordered steps
    python -m storycheck run                         # Run against $STORY_API_BASE_URL
    python -m storycheck compare                     # Latest two runs, same codes?
    python -m storycheck report                      # Generate RESULTS.md
"""

__version__ = "0.1.0"
