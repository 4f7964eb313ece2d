"""Seed the comunidad database through the service layer."""
import argparse
import asyncio
import random
import time

from comunidad.cache import NullCache
from comunidad.database import Base, async_session, engine
from comunidad.schemas import OrganizacionCreate, ProyectoCreate, TemaCreate
from comunidad.services.organizaciones_service import OrganizacionesService
from comunidad.services.proyectos_service import ProyectosService
from comunidad.services.temas_service import TemasService

TEMAS = [
    ("Economia social", "economia"), ("Cooperativismo", "economia"),
    ("Energias renovables", "ambiente"), ("Agroecologia", "ambiente"),
    ("Educacion popular", "educacion"), ("Software libre", "tecnologia"),
    ("Vivienda", "territorio"), ("Salud comunitaria", "salud"),
    ("Cultura", "cultura"), ("Genero", "derechos"),
]
TIPOS = ["cooperativa", "asociacion", "fundacion", "empresa", "organismo_publico"]
CIUDADES = [("Rosario", "Santa Fe"), ("Cordoba", "Cordoba"), ("Mendoza", "Mendoza"), ("La Plata", "Buenos Aires")]
ESTADOS = ["idea", "en_curso", "finalizado"]
ROLES = ["coordinadora", "participante", "financiadora"]


async def seed(small: bool = False):
    num_organizaciones = 10 if small else 200
    num_proyectos = 20 if small else 500

    print(f"Seeding: {len(TEMAS)} temas, {num_organizaciones} organizaciones, {num_proyectos} proyectos")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    cache = NullCache()
    async with async_session() as session:
        temas = TemasService(session, cache)
        organizaciones = OrganizacionesService(session, cache)
        proyectos = ProyectosService(session, cache)

        tema_ids = []
        for nombre, categoria in TEMAS:
            tema = (await temas.create(TemaCreate(nombre=nombre, categoria=categoria))).unwrap()
            tema_ids.append(tema["id"])
        print(f"  Created {len(tema_ids)} temas")

        organizacion_ids = []
        for i in range(num_organizaciones):
            ciudad, provincia = random.choice(CIUDADES)
            data = OrganizacionCreate(
                nombre=f"Organizacion {i:04d}",
                descripcion=f"Organizacion de prueba numero {i}.",
                tipo=random.choice(TIPOS),
                ciudad=ciudad,
                provincia=provincia,
                pais="Argentina",
                sitio_web=f"https://org{i:04d}.example.org",
                email_contacto=f"contacto{i:04d}@example.org",
                abierta_a_colaboraciones=random.random() > 0.5,
            )
            organizacion = (await organizaciones.create(data)).unwrap()
            organizacion_ids.append(organizacion["id"])
            for tema_id in random.sample(tema_ids, k=random.randint(1, 3)):
                (await organizaciones.add_tema(organizacion["id"], tema_id)).unwrap()
        await session.flush()
        print(f"  Created {len(organizacion_ids)} organizaciones")

        for i in range(num_proyectos):
            data = ProyectoCreate(
                titulo=f"Proyecto {i:04d}",
                descripcion=f"Proyecto de prueba numero {i}.",
                estado=random.choice(ESTADOS),
                anio=random.randint(2015, 2026),
            )
            proyecto = (await proyectos.create(data)).unwrap()
            for tema_id in random.sample(tema_ids, k=random.randint(1, 2)):
                (await proyectos.add_tema(proyecto["id"], tema_id)).unwrap()
            for organizacion_id in random.sample(organizacion_ids, k=min(2, len(organizacion_ids))):
                (await proyectos.add_organizacion(proyecto["id"], organizacion_id, rol=random.choice(ROLES))).unwrap()
        print(f"  Created {num_proyectos} proyectos")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the comunidad database")
    parser.add_argument("--small", action="store_true", help="Use a small dataset (20 proyectos)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
