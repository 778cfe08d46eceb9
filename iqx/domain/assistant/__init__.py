"""Chat assistants: the general IQX chatbot and the AriX Pro analyst."""
