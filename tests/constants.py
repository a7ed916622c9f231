"""Shared identifiers for the test suite.

Overlays, accounts and hashes are lowercase ``0x`` hex, the form upstream
normalises chain data to before it reaches the engine.
"""

OVERLAY_A = "0x" + "a1" * 32
OVERLAY_B = "0x" + "b2" * 32
OVERLAY_C = "0x" + "c3" * 32
OVERLAY_UNKNOWN = "0x" + "ee" * 32

OWNER_A = "0x" + "0a" * 20
OWNER_B = "0x" + "0b" * 20
OWNER_C = "0x" + "0c" * 20

HASH_H = "0x" + "11" * 32
HASH_G = "0x" + "22" * 32

ANCHOR_1 = "0x" + "5a" * 32
ANCHOR_2 = "0x" + "6b" * 32

# 1 BZZ in PLUR
BZZ = 10**16
