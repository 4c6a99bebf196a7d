"""
Concierge - Discord helper bot

Concierge answers members of a Discord server from a small, dashboard-editable
configuration before falling back to a generative model.

Core Components:

- **Dispatch Pipeline**: Routes every message through an ordered chain
  (DM logging, moderation commands, custom commands, keyword replies,
  channel redirects, AI answers) and stops at the first stage that claims it
- **DM Log**: Append-only JSON audit log of direct messages sent to the bot
- **Membership Handler**: Welcomes new members and grants an auto-role
- **Dashboard**: Small HTTP service to edit ``settings.json`` and read the DM log

Usage:
    from concierge.main import main
    main()
"""
