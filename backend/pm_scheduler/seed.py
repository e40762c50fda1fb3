"""
Seed script — populates Supabase with demo maintenance data.

Creates the tables if needed, then inserts a handful of assets,
technicians and preventive plans. One plan is overdue so the first
scheduler cycle generates a ticket.

Usage:
    cd backend
    python -m pm_scheduler.seed
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone

from pm_scheduler.database import close_pool, ensure_schema, get_pool
from pm_scheduler.schemas.maintenance import Asset, PreventivePlan, Technician

# ──────────────────────────────────────────────
# Fixed demo definitions
# ──────────────────────────────────────────────

ASSETS = [
    Asset(id="TG-01", name="Turbina a Gás TG-01", code="TG-01", location="Casa de Força", criticality="high"),
    Asset(id="CNV-01", name="Esteira Transportadora CNV-01", code="CNV-01", location="Linha 1"),
    Asset(id="R-04", name="Painel Elétrico R-04", code="R-04", location="Subestação"),
    Asset(id="C-22", name="Compressor C-22", code="C-22", location="Utilidades", criticality="high"),
]

TECHNICIANS = [
    Technician(id="TEC-01", name="Carlos Silva", role="Mecânico Pleno", status="active",
               phone="+5511990000001", skills=["Hidráulica", "Mecânica"], shift="morning"),
    Technician(id="TEC-02", name="Ana Souza", role="Eletricista", status="active",
               phone="+5511990000002", skills=["NR10", "PLC"], shift="afternoon"),
    Technician(id="TEC-03", name="Roberto Lima", role="Mecânico Sênior", status="on-leave",
               skills=["Vibração"], shift="night"),
]


def build_demo_plans(now: datetime) -> list[PreventivePlan]:
    """Preventive plans relative to ``now``; the first one is overdue."""
    return [
        PreventivePlan(
            id="PLN-01",
            name="Revisão Mensal Turbina",
            description="Verificação de óleos, filtros e vibração.",
            asset_ids=["TG-01"],
            frequency_type="time",
            frequency_value=1,
            frequency_unit="months",
            tasks=[
                "Verificar nível de óleo",
                "Inspecionar filtros de entrada",
                "Medir vibração nos mancais",
                "Verificar vazamentos",
            ],
            status="active",
            last_execution=now - timedelta(days=32),
            next_execution=now - timedelta(days=1),
        ),
        PreventivePlan(
            id="PLN-02",
            name="Lubrificação Esteira",
            description="Engraxar rolamentos principais.",
            asset_ids=["CNV-01"],
            frequency_type="time",
            frequency_value=15,
            frequency_unit="days",
            tasks=["Limpar bicos graxeiros", "Aplicar graxa MP-2", "Verificar ruído"],
            status="active",
            last_execution=now - timedelta(days=5),
            next_execution=now + timedelta(days=10),
        ),
        PreventivePlan(
            id="PLN-03",
            name="Termografia Painéis",
            description="Inspeção preditiva elétrica.",
            asset_ids=["R-04", "TG-01", "C-22"],
            frequency_type="time",
            frequency_value=3,
            frequency_unit="months",
            tasks=["Escanear barramentos", "Verificar conexões soltas", "Gerar relatório"],
            status="active",
            auto_generate=False,
            last_execution=now - timedelta(days=60),
            next_execution=now + timedelta(days=30),
        ),
    ]


# ──────────────────────────────────────────────
# Main seed routine
# ──────────────────────────────────────────────

async def seed():
    pool = await get_pool()
    now = datetime.now(timezone.utc)
    plans = build_demo_plans(now)

    async with pool.acquire() as conn:
        print("Ensuring schema...")
        await ensure_schema(conn)

        # Clear existing data
        print("Clearing existing data...")
        for table in ("preventive_logs", "tickets", "preventive_plans", "technicians", "assets"):
            await conn.execute(f"DELETE FROM {table}")

        print("\nInserting assets...")
        for a in ASSETS:
            await conn.execute(
                "INSERT INTO assets (id, name, code, location, status, criticality, created_at) "
                "VALUES ($1, $2, $3, $4, $5, $6, $7)",
                a.id, a.name, a.code, a.location, a.status, a.criticality, now,
            )
            print(f"  [OK] {a.name}")

        print("\nInserting technicians...")
        for t in TECHNICIANS:
            await conn.execute(
                "INSERT INTO technicians (id, name, role, email, phone, status, skills, shift) "
                "VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb, $8)",
                t.id, t.name, t.role, t.email, t.phone, t.status, json.dumps(t.skills), t.shift,
            )
            print(f"  [OK] {t.name} - {t.status}")

        print("\nInserting preventive plans...")
        for p in plans:
            await conn.execute(
                """
                INSERT INTO preventive_plans (
                    id, name, description, status, auto_generate, asset_ids,
                    frequency_type, frequency_value, frequency_unit, tasks,
                    last_execution, next_execution, created_at
                ) VALUES ($1, $2, $3, $4, $5, $6::jsonb, $7, $8, $9, $10::jsonb, $11, $12, $13)
                """,
                p.id, p.name, p.description, p.status, p.auto_generate,
                json.dumps(p.asset_ids), p.frequency_type, p.frequency_value,
                p.frequency_unit, json.dumps(p.tasks), p.last_execution,
                p.next_execution, now,
            )
            print(f"  [OK] {p.name} - next {p.next_execution:%Y-%m-%d}")

        print(f"\n{'='*50}")
        print(f"Seed complete!")
        print(f"  Assets:       {len(ASSETS)}")
        print(f"  Technicians:  {len(TECHNICIANS)}")
        print(f"  Plans:        {len(plans)}")
        print(f"{'='*50}")

    await close_pool()


async def main():
    print("=" * 50)
    print("SEED SCRIPT - Preventive Maintenance Scheduler")
    print("=" * 50)
    await seed()


if __name__ == "__main__":
    asyncio.run(main())
