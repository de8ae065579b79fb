"""Draw engine for amateur padel tournaments: seeding, brackets and zones."""
