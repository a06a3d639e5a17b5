"""Blackjack Hub: комнаты, раунды и рассылка состояния по WebSocket."""
