"""Game domain services: evasion, session integrity and rankings.

The evasion engine, difficulty model and position sampler are pure
client-side logic with no Flask or database imports. The ledger and
ranking modules are the server-side authority and are imported by HTTP
routes, keeping transport concerns separated from the rules.
"""
