"""Pet stat synchronization, decay, trait, and evolution engine."""
