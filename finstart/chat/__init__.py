from finstart.chat.assistant import ChatAssistant, build_history

__all__ = ['ChatAssistant', 'build_history']
