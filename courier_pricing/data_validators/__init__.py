# Rule validation (collect-all, never raises)
