"""Client-side state layer.

Bounded measurement history, the trend window, their retention policy and
the blob storage they persist to.
"""
