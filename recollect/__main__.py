from recollect import serve

serve()
