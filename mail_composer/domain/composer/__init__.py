"""Composer domain - draft generation, preview, validation and sending"""
