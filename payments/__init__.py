"""Payment amounts, buyer contact checks and gateway integrations."""
