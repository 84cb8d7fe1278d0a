"""HackDB: a small catalogue of hacks with role-gated editing."""
