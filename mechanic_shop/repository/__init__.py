"""Repository layer: store access helpers (SQLite).

Keep functions thin and focused, so services/workflows avoid SQL strings.
Every StoreError leaving this package is wrapped in a RepositoryError.
"""
from __future__ import annotations
