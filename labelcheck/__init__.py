"""labelcheck: AI-assisted food label compliance analysis backend."""
