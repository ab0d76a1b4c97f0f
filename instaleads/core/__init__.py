"""Search, captcha, enrichment and phone-extraction pipeline."""
