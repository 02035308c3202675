"""Pure repertoire and study reconciliation rules."""
