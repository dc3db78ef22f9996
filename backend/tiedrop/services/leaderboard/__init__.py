"""Leaderboard domain services: ranking, placement and submissions.

Ranking and placement are pure functions over snapshots handed to them;
the submission helpers wire them to a storage backend and the broadcaster,
keeping transport concerns in the routes and socket handlers.
"""
