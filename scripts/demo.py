#!/usr/bin/env python3
"""
Demo script for offline-first synchronization.

Runs entirely in memory: a workout is logged while offline, read back from
the local store, then pushed during a full synchronization pass once the
remote store is reachable again.
"""

import asyncio

from gymtrack_sync.logging_config import configure_logging
from gymtrack_sync.repositories import InMemoryLocalStore, InMemoryRemoteGateway
from gymtrack_sync.services import GymTrackClient

USER_ID = "demo-user"


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def demo_offline_writes(client: GymTrackClient, remote: InMemoryRemoteGateway) -> None:
    """Write while the device is offline."""
    print_section("Offline Writes")

    await client.save_profile({"uid": USER_ID, "username": "demo_lifter", "weight": 82}, online=False)
    result = await client.save_workout(
        {
            "userId": USER_ID,
            "name": "Push day",
            "date": "2024-01-01",
            "exercises": [
                {"id": "bench", "name": "Bench press", "sets": [{"weight": 60, "reps": 8}]},
            ],
        },
        online=False,
    )
    print(f"\n📝 Saved workout with local id: {result.data['id']}")

    for day, weight in (("2024-01-01", 82.0), ("2024-01-02", 81.6), ("2024-01-02", 81.4)):
        await client.log_weight({"userId": USER_ID, "date": day, "weight": weight}, online=False)
        print(f"  ✓ Logged {weight} kg on {day}")

    workouts = await client.get_all_workouts(USER_ID, online=False)
    log = await client.get_weight_log(USER_ID, online=False)
    print(f"\n📦 Local workouts: {len(workouts.data)}")
    print(f"📦 Local weight entries: {[(e['date'], e['weight'], e.get('change')) for e in log.data]}")
    print(f"☁️  Remote calls so far: {len(remote.calls)}")


async def demo_synchronization(client: GymTrackClient, remote: InMemoryRemoteGateway) -> None:
    """Reconnect and run a full synchronization pass."""
    print_section("Synchronization")

    result = await client.sync_all(USER_ID, online=True)
    print(f"\n🔄 Sync ok: {result.data['ok']}")
    for name, report in result.data["reports"].items():
        print(f"  {name:<14} pushed={report.get('pushed')} pulled={report.get('pulled')}")

    workouts = remote.documents(f"users/{USER_ID}/workoutHistory")
    print(f"\n☁️  Remote workout ids: {list(workouts)}")


async def demo_friend_requests(client: GymTrackClient) -> None:
    """Negotiate a friendship; only possible online."""
    print_section("Friend Requests")

    offline = await client.send_friend_request(USER_ID, "buddy", "demo_lifter", online=False)
    print(f"\n✗ Offline request rejected: {offline.error.code}")

    sent = await client.send_friend_request(USER_ID, "buddy", "demo_lifter", online=True, to_username="buddy")
    accepted = await client.accept_friend_request(sent.data["id"], "buddy", online=True)
    print(f"✓ Accepted, created {len(accepted.data)} friend records")

    again = await client.accept_friend_request(sent.data["id"], "buddy", online=True)
    print(f"✗ Second accept rejected: {again.error.code}")

    friends = await client.get_friends(USER_ID, online=True)
    print(f"👥 Friends of {USER_ID}: {[friend['friendId'] for friend in friends.data]}")


async def run() -> None:
    remote = InMemoryRemoteGateway()
    client = await GymTrackClient.create(InMemoryLocalStore(), remote)
    try:
        await demo_offline_writes(client, remote)
        await demo_synchronization(client, remote)
        await demo_friend_requests(client)
        print(f"\n📊 Cache: {client.cache.stats().to_dict()}")
    finally:
        await client.close()


def main() -> None:
    """Run all demos."""
    configure_logging("WARNING")

    print("\n🚀 GymTrack Sync Demo")
    print("=" * 70)
    print("Offline-first writes, full synchronization and friend requests")
    print("(in-memory local and remote stores)")

    try:
        asyncio.run(run())

        print("\n" + "=" * 70)
        print("✅ Demo completed successfully!")
        print("=" * 70)

    except Exception as e:
        print(f"\n❌ Error: {e}")


if __name__ == "__main__":
    main()
