"""Application services: bucket building and the ordered indicator chain."""
