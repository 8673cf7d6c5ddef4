"""
Golf Club Service - membership and tournament records

Responsibilities:
- Member lifecycle (contacts, status overrides, lazy expiry)
- Tournament lifecycle (date window, capacity, status transitions, revenue)
- Member <-> tournament registrations and completion stats
- Read-only member and tournament reports
- JSON API over all of the above
"""
