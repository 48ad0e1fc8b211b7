"""
FastAPI Organizer Backend package.

Accounts, image posts, calendar entries and to-do items, each owned by a
user. The FastAPI app lives in 'src.organizer.main'.
"""
