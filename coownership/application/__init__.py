"""
Application layer - Use cases and orchestration.

Contains the vote ledger, effect executor, proposal state machine and
the consensus facade, plus the ports they depend on. Depends on the
domain layer only.
"""
