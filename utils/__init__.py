"""Utilitários - parsing de respostas de IA e validação de entrada."""
