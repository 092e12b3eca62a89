# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db hortifruti.db
  python app.py params show
  python app.py produto add 00123 "Tomate Italiano" --preco 8.99
  python app.py lote importar lotes.xlsx
  python app.py venda registrar 00123:1,5
  python app.py pedido fechar 1 --frete 50 --aprovar
"""

from hortifruti.adapters.cli import main

if __name__ == "__main__":
    main()
