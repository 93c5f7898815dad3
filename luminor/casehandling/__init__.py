"""Case handling: inquiry orchestration, dashboard read model, projection and demo seeding."""