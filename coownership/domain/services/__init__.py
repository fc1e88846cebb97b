"""Pure domain services: quorum evaluation and payload validation."""
