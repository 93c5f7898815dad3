"""Tenant inquiry intake."""