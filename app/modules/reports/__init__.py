"""
Reports Module

Reportes PDF sobre las tablas existentes (ventas, gastos, productos,
depósitos, movimientos de stock, entradas y transacciones).

- routers/  -> endpoints FastAPI que devuelven application/pdf
- services/ -> consultas y agregaciones (sumas, agrupaciones, top-N)
- schemas/  -> estructuras agregadas por reporte
- utils/    -> formateo, respuesta PDF y renderizado con reportlab
"""
