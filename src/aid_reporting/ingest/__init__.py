"""Source access for the aid warehouse.

Loads the fact collection and its dimension collections from MongoDB into a
`StarSchema` snapshot.
"""
