"""
Expire overdue mock sessions and print what is still live (no backend needed).
Run from backend folder: python sweep_expired_sessions.py
"""
import asyncio
import sys

sys.stdout.reconfigure(encoding='utf-8', errors='replace')


async def main():
    from app.dependencies import _get_supabase_client
    from app.scheduler import sweep_expired_sessions

    client = _get_supabase_client()

    print("[1/2] Expiring overdue sessions...")
    count = await sweep_expired_sessions()
    print(f"  Expired {count} session(s)")

    result = (
        client.table("mock_sessions")
        .select("id", count="exact")
        .in_("status", ["active", "paused"])
        .execute()
    )
    live = result.count if result.count is not None else len(result.data or [])
    print(f"\n[2/2] Done! Live sessions remaining: {live}")


if __name__ == "__main__":
    asyncio.run(main())
