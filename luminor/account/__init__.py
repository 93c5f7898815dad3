"""User accounts: models, service, facade, SQLite storage and an org-change handler."""