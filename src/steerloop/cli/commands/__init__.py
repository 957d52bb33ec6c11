"""steerloop CLI subcommands."""
