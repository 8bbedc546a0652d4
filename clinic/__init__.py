"""Clinic application for the VetCare backend.

Models, services, serializers, views and routes for running a
veterinary hospital: owners, pets, admissions, cages, staff, inventory,
purchasing, donations and billing.
"""
