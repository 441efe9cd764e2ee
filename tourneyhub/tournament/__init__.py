"""Tournament lifecycle: lookups, settlement and room reveal."""
