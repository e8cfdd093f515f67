"""CLI: papersim commands, session wiring, terminal output and structured logs."""
