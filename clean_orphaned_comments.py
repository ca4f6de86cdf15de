"""Delete comments whose blog no longer exists.

Blog deletion removes the blog and its comments in two separate commits; run
this after a crash between the two.
"""
from sqlmodel import Session
from quickblog.core.logging import configure_logging
from quickblog.db.session import engine, create_db_and_tables
from quickblog.services.comment import CommentService

def clean_orphaned_comments() -> int:
    create_db_and_tables()
    with Session(engine) as session:
        deleted = CommentService(session).delete_orphans()
    print(f"Deleted {deleted} orphaned comments.")
    return deleted

if __name__ == "__main__":
    configure_logging()
    clean_orphaned_comments()
