"""Everything that talks to / understands the modem.

Only tested against the SB8200. From the screenshots I find online all SB modems seem more or less the same,
so the code - as written - might work beyond the SB8200.
"""
