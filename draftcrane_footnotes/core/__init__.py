"""GUI-agnostic footnote core: schema, mutations, corrector, services."""
