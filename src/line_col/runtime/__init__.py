"""Runtime services (logging and profiling) shared by the lookup code."""
