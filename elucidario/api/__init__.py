"""HTTP surface: generic entity router, controllers and resource routes."""
