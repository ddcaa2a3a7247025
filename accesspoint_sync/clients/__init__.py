"""External service clients: Pinecone index handle, OpenAI embeddings, and the vector index adapter."""
