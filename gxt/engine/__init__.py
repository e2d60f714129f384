"""Decision engine: checklist scoring, risk gating and the live pipeline."""
