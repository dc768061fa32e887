"""Levelminds recruitment platform API"""
