#!/usr/bin/env python3
"""Basic usage example for the ChainProfile SDK.

This example demonstrates:
- Connecting a wallet account
- Reading the account's on-chain profile
- Setting a profile and following it to finality
- Removing the profile again
"""

import asyncio

from chainprofile_sdk import ProfileDashboard


async def main():
    """Run basic SDK operations."""
    dashboard = ProfileDashboard.from_settings(setup_logging=True)
    last_message = None

    def on_change(d: ProfileDashboard) -> None:
        nonlocal last_message
        if d.notification is not None and d.notification.message != last_message:
            last_message = d.notification.message
            print(f"  [{d.notification.severity.value}] {last_message}")

    dashboard.subscribe(on_change)

    try:
        # Connect the wallet and pick its first account
        print("Connecting to wallet...")
        identity = await dashboard.select_first_identity()
        if identity is None:
            return
        print(f"Connected as: {identity.display_name or 'unnamed'} ({identity.short_address})")

        # Show the current on-chain profile
        if dashboard.profile is not None:
            print(f"  Username: {dashboard.profile.username}")
            print(f"  Bio: {dashboard.profile.bio}")
        elif dashboard.profile_loaded:
            print("  No profile stored yet")

        # Set a profile
        print("\nSetting profile...")
        dashboard.update_draft(username="alice", bio="hello from python")
        tx = await dashboard.submit_set_profile()
        if tx is not None:
            print(f"Transaction {tx.state.value} ({' -> '.join(s.value for s in tx.history)})")
        if dashboard.profile is not None:
            print(f"  Stored profile: {dashboard.profile.username} / {dashboard.profile.bio}")

        # Remove it again
        print("\nRemoving profile...")
        tx = await dashboard.submit_remove_profile()
        if tx is not None:
            print(f"Transaction {tx.state.value}")
        print(f"  Profile present: {dashboard.profile is not None}")
    finally:
        await dashboard.aclose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
